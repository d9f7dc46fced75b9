"""Onboarding scoring, stage gating and deadline classification.

Pure functions over a record exposing the six stage blobs as attributes
(``business_info`` ... ``feedback``) plus ``status`` and
``estimated_completion_date``. Time-dependent functions take ``now``
explicitly. A stage blob that is not a dict, or a list field that is not a
list, counts as absent; nothing here raises on malformed input.

Two completion views exist on purpose: ``compute_progress`` awards
granular points per field, while ``stage_progress`` / ``next_action`` only
look at one anchor field per stage.
"""
from __future__ import annotations
import math
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from salonops.utils.dates import as_utc

STAGES: Tuple[str, ...] = (
    'business_info',
    'pre_onboarding',
    'needs_assessment',
    'service_proposal',
    'follow_up',
    'feedback',
)

STATUS_PENDING = 'pending'
STATUS_IN_PROGRESS = 'in-progress'
STATUS_COMPLETED = 'completed'
STATUS_OVERDUE = 'overdue'
STATUS_CANCELLED = 'cancelled'
ALL_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_OVERDUE, STATUS_CANCELLED)

DEFAULT_COMPLETION_WINDOW = timedelta(days=30)


def _present(value: Any) -> bool:
    return bool(value)


def _non_empty(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


# stage -> ((field, points, check), ...)
SCORING_RULES: Dict[str, Tuple[Tuple[str, int, Callable[[Any], bool]], ...]] = {
    'business_info': (
        ('company_name', 10, _present),
        ('phone_number', 3, _present),
        ('email_address', 3, _present),
        ('physical_address', 2, _present),
        ('number_of_employees', 2, _present),
    ),
    'pre_onboarding': (
        ('initial_contact_checklist', 8, _non_empty),
        ('meeting_prep_checklist', 4, _non_empty),
        ('initial_contact_date', 2, _present),
        ('first_meeting_date', 1, _present),
    ),
    'needs_assessment': (
        ('current_arrangements', 5, _present),
        ('services_needed', 8, _non_empty),
        ('preferred_days', 3, _non_empty),
        ('monthly_budget', 4, _present),
    ),
    'service_proposal': (
        ('recommended_package', 8, _present),
        ('proposed_frequency', 4, _present),
        ('service_duration', 4, _present),
        ('proposed_pricing', 4, _present),
    ),
    'follow_up': (
        ('contract_status', 8, _present),
        ('immediate_actions', 4, _non_empty),
        ('proposal_submission_date', 3, _present),
    ),
    'feedback': (
        ('satisfaction_rating', 5, _present),
        ('assigned_staff_member', 3, _present),
        ('completion_date', 2, _present),
    ),
}

# A gated stage scores nothing unless its gate field is present.
STAGE_GATES: Dict[str, str] = {'business_info': 'company_name'}

# stage -> (anchor field, check, next action label, priority)
STAGE_ANCHORS: Dict[str, Tuple[str, Callable[[Any], bool], str, str]] = {
    'business_info': ('company_name', _present, 'Complete business information', 'high'),
    'pre_onboarding': ('initial_contact_checklist', _non_empty, 'Schedule initial contact', 'high'),
    'needs_assessment': ('current_arrangements', _present, 'Conduct needs assessment', 'medium'),
    'service_proposal': ('recommended_package', _present, 'Prepare service proposal', 'medium'),
    'follow_up': ('contract_status', _present, 'Follow up on proposal', 'high'),
    'feedback': ('satisfaction_rating', _present, 'Collect feedback', 'low'),
}

COMPLETED_ACTION = {'stage': 'completed', 'action': 'Onboarding complete', 'priority': 'none'}


def stage_data(record: Any, stage: str) -> Dict[str, Any]:
    blob = getattr(record, stage, None)
    return blob if isinstance(blob, dict) else {}


def stage_score(record: Any, stage: str) -> int:
    data = stage_data(record, stage)
    gate = STAGE_GATES.get(stage)
    if gate and not _present(data.get(gate)):
        return 0
    return sum(points for name, points, check in SCORING_RULES[stage] if check(data.get(name)))


def compute_progress(record: Any) -> int:
    total = sum(stage_score(record, stage) for stage in STAGES)
    return min(100, int(round(total)))


def _anchor_set(record: Any, stage: str) -> bool:
    name, check, _label, _priority = STAGE_ANCHORS[stage]
    return check(stage_data(record, stage).get(name))


def stage_progress(record: Any) -> Dict[str, int]:
    return {stage: 100 if _anchor_set(record, stage) else 0 for stage in STAGES}


def next_action(record: Any) -> Dict[str, str]:
    for stage in STAGES:
        if not _anchor_set(record, stage):
            _name, _check, label, priority = STAGE_ANCHORS[stage]
            return {'stage': stage, 'action': label, 'priority': priority}
    return dict(COMPLETED_ACTION)


def days_remaining(estimated_completion_date: Optional[datetime], status: Optional[str], now: datetime) -> Optional[int]:
    if estimated_completion_date is None or status == STATUS_COMPLETED:
        return None
    delta = as_utc(estimated_completion_date) - as_utc(now)
    return math.ceil(delta.total_seconds() / 86400)


def urgency_level(days: Optional[int]) -> str:
    if days is None:
        return 'none'
    if days < 0:
        return 'overdue'
    if days <= 3:
        return 'urgent'
    if days <= 7:
        return 'high'
    if days <= 14:
        return 'medium'
    return 'low'


def record_days_remaining(record: Any, now: datetime) -> Optional[int]:
    return days_remaining(getattr(record, 'estimated_completion_date', None), getattr(record, 'status', None), now)


def apply_persist_rules(record: Any, now: datetime, is_new: bool = False) -> None:
    """Recompute derived fields in place; run before every insert/update.

    ``completed_at`` is stamped on first completion only, while
    ``actual_completion_date`` is refreshed on every save at 100.
    A progress of 0 leaves the status untouched.
    """
    record.progress = compute_progress(record)
    if not getattr(record, 'status', None):
        record.status = STATUS_PENDING
    if record.progress == 100:
        record.status = STATUS_COMPLETED
        record.actual_completion_date = now
        if not getattr(record, 'completed_at', None):
            record.completed_at = now
    elif 0 < record.progress < 100:
        deadline = as_utc(getattr(record, 'estimated_completion_date', None))
        if deadline is not None and as_utc(now) > deadline:
            record.status = STATUS_OVERDUE
        else:
            record.status = STATUS_IN_PROGRESS
    if is_new and not getattr(record, 'estimated_completion_date', None):
        record.estimated_completion_date = now + DEFAULT_COMPLETION_WINDOW


__all__ = [
    'STAGES', 'ALL_STATUSES', 'SCORING_RULES', 'STAGE_ANCHORS',
    'compute_progress', 'stage_score', 'stage_progress', 'next_action',
    'days_remaining', 'urgency_level', 'record_days_remaining', 'apply_persist_rules', 'as_utc',
]
