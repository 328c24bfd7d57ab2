# famhub/apps/family_api/summary_service.py
"""
Weekly summaries over a child's health logs, check-ins and driving reports.

The window is (now - days, now]: an entry stamped exactly at the window start
belongs to the previous week, one stamped exactly at `now` is counted.
"""
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.utils import timezone

from .location_service import get_family_child
from .models import CheckIn, DrivingReport, HealthLog


def summary_window(now=None, days=None):
    end = now or timezone.now()
    days = days if days is not None else getattr(settings, 'SUMMARY_WINDOW_DAYS', 7)
    return end - timedelta(days=days), end


def round_half_up(value):
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def aggregate_health_logs(logs):
    """Bucket an iterable of HealthLogs (any order) by type."""
    logs = sorted(logs, key=lambda log: log.timestamp, reverse=True)
    counts = {log_type: 0 for log_type, _ in HealthLog.LOG_TYPES}
    mood_entries = []
    for log in logs:
        counts[log.log_type] = counts.get(log.log_type, 0) + 1
        if log.log_type == 'mood':
            mood_entries.append({'value': log.value, 'timestamp': log.timestamp.isoformat()})
    return {
        'total_entries': len(logs),
        'meal_count': counts['meal'],
        'sleep_count': counts['sleep'],
        'mood_count': counts['mood'],
        'symptom_count': counts['symptom'],
        'medicine_count': counts['medicine'],
        'mood_entries': mood_entries,
    }


def aggregate_driving_reports(reports):
    scores = [r.score for r in reports]
    if not scores:
        return {'total_trips': 0, 'avg_score': 0, 'total_distance': 0, 'max_speed': 0}
    return {
        'total_trips': len(scores),
        'avg_score': round_half_up(sum(scores) / len(scores)),
        'total_distance': round(sum(r.distance for r in reports), 2),
        'max_speed': max(r.max_speed for r in reports),
    }


def weekly_health_summary(child, now=None, days=None):
    start, end = summary_window(now, days)
    logs = HealthLog.objects.filter(child=child, timestamp__gt=start, timestamp__lte=end)
    summary = aggregate_health_logs(logs)
    summary['check_in_count'] = CheckIn.objects.filter(
        child=child, timestamp__gt=start, timestamp__lte=end
    ).count()
    summary['window_start'] = start.isoformat()
    summary['window_end'] = end.isoformat()
    return summary


def weekly_driving_summary(child, now=None, days=None):
    start, end = summary_window(now, days)
    reports = list(DrivingReport.objects.filter(child=child, trip_start__gt=start, trip_start__lte=end))
    summary = aggregate_driving_reports(reports)
    summary['window_start'] = start.isoformat()
    summary['window_end'] = end.isoformat()
    return summary


def family_weekly_summary(owner, child_id=None, now=None, days=None):
    """
    Health and driving summaries for one of the family's children.
    Returns None when no child is selected; raises NotFoundError for a child
    outside the family.
    """
    child = get_family_child(owner, child_id)
    if child is None:
        return None
    return {
        'child_id': child.id,
        'health': weekly_health_summary(child, now, days),
        'driving': weekly_driving_summary(child, now, days),
    }
