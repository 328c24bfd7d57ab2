# famhub/apps/family_api/tests/test_task_service.py
from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone

from apps.family_api.models import Task
from apps.family_api.task_service import (
    COMPLETED, OVERDUE, UPCOMING, classify_task, filter_by_due_state, next_due_date, toggle_task
)


class ClassifyTaskTests(TestCase):
    def setUp(self):
        self.now = timezone.now()

    def test_completed_wins_over_past_due_date(self):
        self.assertEqual(classify_task(True, self.now - timedelta(days=3), self.now), COMPLETED)
        self.assertEqual(classify_task(True, self.now + timedelta(days=3), self.now), COMPLETED)

    def test_due_now_is_overdue(self):
        self.assertEqual(classify_task(False, self.now, self.now), OVERDUE)
        self.assertEqual(classify_task(False, self.now - timedelta(seconds=1), self.now), OVERDUE)

    def test_future_is_upcoming(self):
        self.assertEqual(classify_task(False, self.now + timedelta(minutes=1), self.now), UPCOMING)


class RecurrenceTests(TestCase):
    def test_next_due_date(self):
        due = datetime(2024, 1, 31, 9, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(next_due_date(due, 'daily'), datetime(2024, 2, 1, 9, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(next_due_date(due, 'weekly'), datetime(2024, 2, 7, 9, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(next_due_date(due, 'monthly'), datetime(2024, 2, 29, 9, 0, tzinfo=dt_timezone.utc))
        self.assertIsNone(next_due_date(due, None))


class ToggleTaskTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username='task_owner', password='password')
        self.now = timezone.now()

    def test_toggle_one_off_task(self):
        task = Task.objects.create(owner=self.owner, title='Dentist', due_date=self.now - timedelta(hours=1))
        self.assertEqual(task.due_state, OVERDUE)
        self.assertTrue(task.is_overdue)

        self.assertIsNone(toggle_task(task))
        task.refresh_from_db()
        self.assertTrue(task.completed)
        self.assertIsNotNone(task.completed_at)
        self.assertEqual(task.due_state, COMPLETED)

        toggle_task(task)
        task.refresh_from_db()
        self.assertFalse(task.completed)
        self.assertIsNone(task.completed_at)
        self.assertEqual(Task.objects.count(), 1)

    def test_completing_recurring_task_schedules_next(self):
        due = self.now + timedelta(hours=2)
        task = Task.objects.create(owner=self.owner, title='Vitamins', due_date=due, recurring='daily',
                                   category='medicine', priority='high')
        follow_up = toggle_task(task)
        self.assertIsNotNone(follow_up)
        self.assertEqual(follow_up.due_date, due + timedelta(days=1))
        self.assertEqual(follow_up.title, 'Vitamins')
        self.assertEqual(follow_up.category, 'medicine')
        self.assertFalse(follow_up.completed)

        # Reopening does not schedule another
        self.assertIsNone(toggle_task(task))
        self.assertEqual(Task.objects.count(), 2)

    def test_filter_by_due_state(self):
        done = Task.objects.create(owner=self.owner, title='Done', due_date=self.now - timedelta(days=1), completed=True)
        late = Task.objects.create(owner=self.owner, title='Late', due_date=self.now - timedelta(days=1))
        soon = Task.objects.create(owner=self.owner, title='Soon', due_date=self.now + timedelta(days=1))
        tasks = Task.objects.filter(owner=self.owner)
        self.assertEqual(filter_by_due_state(tasks, COMPLETED, self.now), [done])
        self.assertEqual(filter_by_due_state(tasks, OVERDUE, self.now), [late])
        self.assertEqual(filter_by_due_state(tasks, UPCOMING, self.now), [soon])
