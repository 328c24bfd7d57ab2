# famhub/apps/family_api/tests/test_alert_service.py
from datetime import timedelta

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone

from apps.family_api.alert_service import (
    list_alerts, mark_alert_read, mark_all_alerts_read, unread_alert_count
)
from apps.family_api.exceptions import NotFoundError
from apps.family_api.models import Child, GeofenceAlert, Location


class AlertInboxTests(TestCase):
    def setUp(self):
        self.parent = User.objects.create_user(username='inbox_parent', password='password')
        self.child = Child.objects.create(parent=self.parent, name='Ava')
        self.sibling = Child.objects.create(parent=self.parent, name='Ben')
        self.school = Location.objects.create(owner=self.parent, name='School', latitude=1.0, longitude=1.0)
        now = timezone.now()
        self.old = GeofenceAlert.objects.create(
            owner=self.parent, child=self.child, location=self.school,
            alert_type=GeofenceAlert.ENTER, timestamp=now - timedelta(hours=2)
        )
        self.new = GeofenceAlert.objects.create(
            owner=self.parent, child=self.sibling, location=self.school,
            alert_type=GeofenceAlert.LEAVE, timestamp=now - timedelta(minutes=5)
        )

        self.stranger = User.objects.create_user(username='inbox_stranger', password='password')
        stranger_child = Child.objects.create(parent=self.stranger, name='Cy')
        stranger_place = Location.objects.create(owner=self.stranger, name='Park', latitude=2.0, longitude=2.0)
        self.foreign = GeofenceAlert.objects.create(
            owner=self.stranger, child=stranger_child, location=stranger_place, alert_type=GeofenceAlert.ENTER
        )

    def test_list_newest_first_and_scoped_to_family(self):
        self.assertEqual(list(list_alerts(self.parent)), [self.new, self.old])

    def test_list_filters(self):
        self.assertEqual(list(list_alerts(self.parent, child=self.child)), [self.old])
        mark_alert_read(self.parent, self.new.id)
        self.assertEqual(list(list_alerts(self.parent, unread_only=True)), [self.old])

    def test_alert_message(self):
        self.assertEqual(str(self.old), 'Ava entered School')
        self.assertEqual(self.new.message, 'Ben left School.')

    def test_mark_read_is_idempotent(self):
        self.assertEqual(unread_alert_count(self.parent), 2)
        alert = mark_alert_read(self.parent, self.old.id)
        self.assertTrue(alert.is_read)
        self.assertEqual(unread_alert_count(self.parent), 1)

        alert = mark_alert_read(self.parent, self.old.id)
        self.assertTrue(alert.is_read)
        self.assertEqual(unread_alert_count(self.parent), 1)

    def test_mark_read_outside_family_is_not_found(self):
        with self.assertRaises(NotFoundError):
            mark_alert_read(self.parent, self.foreign.id)
        with self.assertRaises(NotFoundError):
            mark_alert_read(self.parent, 424242)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_mark_all_read(self):
        self.assertEqual(mark_all_alerts_read(self.parent), 2)
        self.assertEqual(unread_alert_count(self.parent), 0)
        self.assertEqual(mark_all_alerts_read(self.parent), 0)
        self.assertEqual(unread_alert_count(self.stranger), 1)
