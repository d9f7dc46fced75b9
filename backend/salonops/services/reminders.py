"""Smart reminder generation from onboarding next actions."""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List

from salonops.services.onboarding_progress import (
    next_action, record_days_remaining, stage_data, as_utc, STATUS_PENDING, STATUS_IN_PROGRESS,
)

ATTENTION_WINDOW = timedelta(days=3)
FALLBACK_DUE = timedelta(days=7)
ATTENTION_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS)


def needs_attention(record: Any, now: datetime) -> bool:
    """Deadline within the window, or untouched for longer than it."""
    if record.status not in ATTENTION_STATUSES:
        return False
    deadline = as_utc(record.estimated_completion_date)
    if deadline is not None and deadline <= as_utc(now) + ATTENTION_WINDOW:
        return True
    updated = as_utc(record.updated_at)
    return updated is not None and updated <= as_utc(now) - ATTENTION_WINDOW


def _classify(days) -> tuple:
    if days is not None and days < 0:
        return 'urgent', 'overdue'
    if days is not None and days <= 3:
        return 'high', 'deadline'
    return 'medium', 'follow-up'


def build_smart_reminder(record: Any, now: datetime):
    step = next_action(record)
    if step['stage'] == 'completed':
        return None
    priority, reminder_type = _classify(record_days_remaining(record, now))
    company = stage_data(record, 'business_info').get('company_name')
    due = as_utc(record.estimated_completion_date) or (as_utc(now) + FALLBACK_DUE)
    return {
        'id': f"smart-{record.id}-{step['stage']}",
        'title': step['action'],
        'description': f"{company} - {step['stage']}",
        'type': reminder_type,
        'priority': priority,
        'due_date': due.isoformat(),
        'onboarding_id': record.id,
        'company_name': company,
        'stage': step['stage'],
        'is_completed': False,
        'is_smart_generated': True,
        'created_at': as_utc(now).isoformat(),
    }


def build_smart_reminders(records: Iterable[Any], now: datetime) -> List[Dict[str, Any]]:
    out = []
    for rec in records:
        if not needs_attention(rec, now):
            continue
        reminder = build_smart_reminder(rec, now)
        if reminder is not None:
            out.append(reminder)
    return out


def reminder_stats(reminders: Iterable[Any], now: datetime) -> Dict[str, int]:
    """Counts over one user's reminders; overdue and due today only consider open ones."""
    now = as_utc(now)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)
    stats = {'total': 0, 'completed': 0, 'pending': 0, 'overdue': 0, 'due_today': 0}
    for r in reminders:
        stats['total'] += 1
        if r.is_completed:
            stats['completed'] += 1
            continue
        stats['pending'] += 1
        due = as_utc(r.due_date)
        if due < now:
            stats['overdue'] += 1
        if day_start <= due < day_end:
            stats['due_today'] += 1
    return stats


__all__ = ['needs_attention', 'build_smart_reminder', 'build_smart_reminders', 'reminder_stats']
