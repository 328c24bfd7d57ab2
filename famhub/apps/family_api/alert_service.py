# famhub/apps/family_api/alert_service.py
import logging

from .exceptions import NotFoundError
from .models import GeofenceAlert

logger = logging.getLogger(__name__)


def list_alerts(owner, child=None, unread_only=False):
    """Geofence alerts for the family, newest first."""
    queryset = GeofenceAlert.objects.filter(owner=owner).select_related('child', 'location')
    if child is not None:
        queryset = queryset.filter(child=child)
    if unread_only:
        queryset = queryset.filter(is_read=False)
    return queryset.order_by('-timestamp', '-id')


def mark_alert_read(owner, alert_id):
    """
    Mark one alert as read. Marking an alert that is already read is a no-op.
    Raises NotFoundError for ids outside the family.
    """
    alert = GeofenceAlert.objects.filter(pk=alert_id, owner=owner).first()
    if alert is None:
        raise NotFoundError(f"Alert {alert_id} not found.")
    if not alert.is_read:
        GeofenceAlert.objects.filter(pk=alert.pk, is_read=False).update(is_read=True)
        alert.is_read = True
        logger.info(f"Alert {alert.id} marked as read by user {owner.id}")
    return alert


def mark_all_alerts_read(owner):
    updated = GeofenceAlert.objects.filter(owner=owner, is_read=False).update(is_read=True)
    logger.info(f"Marked {updated} alert(s) as read for user {owner.id}")
    return updated


def unread_alert_count(owner):
    return GeofenceAlert.objects.filter(owner=owner, is_read=False).count()
