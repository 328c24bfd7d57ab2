# famhub/apps/family_api/tests/test_summary_service.py
from datetime import timedelta

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.family_api.exceptions import NotFoundError
from apps.family_api.models import CheckIn, Child, DrivingReport, HealthLog, Location
from apps.family_api.summary_service import (
    aggregate_driving_reports, family_weekly_summary, round_half_up, summary_window,
    weekly_driving_summary, weekly_health_summary
)


class SummaryHelpersTests(TestCase):
    def test_round_half_up(self):
        self.assertEqual(round_half_up(86.6667), 87)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(3.5), 4)
        self.assertEqual(round_half_up(0), 0)

    @override_settings(SUMMARY_WINDOW_DAYS=3)
    def test_window_length_from_settings(self):
        now = timezone.now()
        start, end = summary_window(now)
        self.assertEqual(end, now)
        self.assertEqual(end - start, timedelta(days=3))

    def test_empty_driving_aggregate(self):
        self.assertEqual(
            aggregate_driving_reports([]),
            {'total_trips': 0, 'avg_score': 0, 'total_distance': 0, 'max_speed': 0}
        )


class WeeklySummaryTests(TestCase):
    def setUp(self):
        self.parent = User.objects.create_user(username='summary_parent', password='password')
        self.child = Child.objects.create(parent=self.parent, name='Summary Child')
        self.now = timezone.now().replace(microsecond=0)

    def _log(self, log_type, value, age):
        return HealthLog.objects.create(
            owner=self.parent, child=self.child, log_type=log_type, value=value, timestamp=self.now - age
        )

    def _trip(self, score, distance, max_speed, age):
        return DrivingReport.objects.create(
            owner=self.parent, child=self.child, start_location='Home', end_location='School',
            trip_start=self.now - age, distance=distance, max_speed=max_speed, score=score
        )

    def test_empty_week_is_all_zeros(self):
        health = weekly_health_summary(self.child, now=self.now)
        self.assertEqual(health['total_entries'], 0)
        self.assertEqual(health['meal_count'], 0)
        self.assertEqual(health['sleep_count'], 0)
        self.assertEqual(health['mood_count'], 0)
        self.assertEqual(health['mood_entries'], [])
        self.assertEqual(health['check_in_count'], 0)

        driving = weekly_driving_summary(self.child, now=self.now)
        self.assertEqual(driving['total_trips'], 0)
        self.assertEqual(driving['avg_score'], 0)
        self.assertEqual(driving['total_distance'], 0)
        self.assertEqual(driving['max_speed'], 0)

    def test_health_counts_by_type(self):
        self._log('meal', 'Oatmeal', timedelta(days=1))
        self._log('meal', 'Pasta', timedelta(days=2))
        self._log('sleep', '9', timedelta(days=1))
        self._log('mood', 'happy', timedelta(hours=3))
        self._log('mood', 'tired', timedelta(days=3))
        self._log('symptom', 'cough', timedelta(days=4))

        summary = weekly_health_summary(self.child, now=self.now)
        self.assertEqual(summary['total_entries'], 6)
        self.assertEqual(summary['meal_count'], 2)
        self.assertEqual(summary['sleep_count'], 1)
        self.assertEqual(summary['mood_count'], 2)
        self.assertEqual(summary['symptom_count'], 1)
        self.assertEqual(summary['medicine_count'], 0)
        self.assertEqual([m['value'] for m in summary['mood_entries']], ['happy', 'tired'])

    def test_window_excludes_start_and_includes_end(self):
        self._log('meal', 'on the start boundary', timedelta(days=7))
        self._log('meal', 'older', timedelta(days=8))
        self._log('meal', 'exactly now', timedelta(0))
        self._log('meal', 'inside', timedelta(days=6, hours=23))

        summary = weekly_health_summary(self.child, now=self.now)
        self.assertEqual(summary['meal_count'], 2)

    def test_check_ins_counted(self):
        place = Location.objects.create(owner=self.parent, name='Library', latitude=1.0, longitude=1.0)
        CheckIn.objects.create(owner=self.parent, location=place, child=self.child, timestamp=self.now - timedelta(days=1))
        CheckIn.objects.create(owner=self.parent, location=place, child=self.child, timestamp=self.now - timedelta(days=10))
        self.assertEqual(weekly_health_summary(self.child, now=self.now)['check_in_count'], 1)

    def test_driving_average_rounds_half_up(self):
        self._trip(70, 10.5, 45.0, timedelta(days=1))
        self._trip(90, 3.25, 62.5, timedelta(days=2))
        self._trip(100, 6.0, 38.0, timedelta(days=3))
        self._trip(10, 100.0, 99.0, timedelta(days=9))

        summary = weekly_driving_summary(self.child, now=self.now)
        self.assertEqual(summary['total_trips'], 3)
        self.assertEqual(summary['avg_score'], 87)
        self.assertEqual(summary['total_distance'], 19.75)
        self.assertEqual(summary['max_speed'], 62.5)

    def test_other_children_not_counted(self):
        other = Child.objects.create(parent=self.parent, name='Sibling')
        HealthLog.objects.create(owner=self.parent, child=other, log_type='meal', value='Soup', timestamp=self.now)
        self.assertEqual(weekly_health_summary(self.child, now=self.now)['total_entries'], 0)


class FamilyWeeklySummaryTests(TestCase):
    def setUp(self):
        self.parent = User.objects.create_user(username='family_summary_parent', password='password')
        self.child = Child.objects.create(parent=self.parent, name='Family Summary Child')

    def test_no_child_selected_returns_none(self):
        self.assertIsNone(family_weekly_summary(self.parent, None))

    def test_child_outside_family(self):
        stranger = User.objects.create_user(username='family_summary_stranger', password='password')
        with self.assertRaises(NotFoundError):
            family_weekly_summary(stranger, self.child.id)

    def test_combined_summary(self):
        summary = family_weekly_summary(self.parent, self.child.id)
        self.assertEqual(summary['child_id'], self.child.id)
        self.assertEqual(summary['health']['total_entries'], 0)
        self.assertEqual(summary['driving']['avg_score'], 0)
