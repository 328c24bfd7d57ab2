# famhub/apps/family_api/task_service.py
import logging

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

COMPLETED = 'completed'
OVERDUE = 'overdue'
UPCOMING = 'upcoming'
DUE_STATES = (COMPLETED, OVERDUE, UPCOMING)

RECURRENCE_STEPS = {
    'daily': relativedelta(days=1),
    'weekly': relativedelta(weeks=1),
    'monthly': relativedelta(months=1),
}


def classify_task(completed, due_date, now=None):
    """
    Derive the due state of a task. Completion always wins; otherwise a task
    whose due date has been reached is overdue.
    """
    if completed:
        return COMPLETED
    now = now or timezone.now()
    if due_date <= now:
        return OVERDUE
    return UPCOMING


def next_due_date(due_date, recurring):
    step = RECURRENCE_STEPS.get(recurring or '')
    if step is None:
        return None
    return due_date + step


@transaction.atomic
def toggle_task(task):
    """
    Flip the completion flag. Completing a recurring task creates its next
    occurrence, which is returned (None otherwise).
    """
    task.completed = not task.completed
    task.completed_at = timezone.now() if task.completed else None
    task.save(update_fields=['completed', 'completed_at'])

    if not task.completed:
        return None

    due = next_due_date(task.due_date, task.recurring)
    if due is None:
        return None

    follow_up = type(task).objects.create(
        owner=task.owner,
        child=task.child,
        title=task.title,
        description=task.description,
        due_date=due,
        category=task.category,
        priority=task.priority,
        recurring=task.recurring,
    )
    logger.info(f"Scheduled next '{task.recurring}' occurrence of task {task.id} as {follow_up.id} due {due.isoformat()}")
    return follow_up


def filter_by_due_state(tasks, due_state, now=None):
    """Filter an iterable of tasks by derived due state, evaluated against one `now`."""
    now = now or timezone.now()
    return [t for t in tasks if classify_task(t.completed, t.due_date, now) == due_state]
