from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, ForeignKey, JSON, DateTime, event

from salonops.models.authz import Base
from salonops.services import onboarding_progress as progress_engine
from salonops.utils.dates import utcnow

log = logging.getLogger(__name__)


class Onboarding(Base):
    __tablename__ = 'onboardings'
    STAGES = progress_engine.STAGES
    ALL_STATUSES = progress_engine.ALL_STATUSES
    PRIORITIES = ('low', 'medium', 'high', 'urgent')
    # Never writable through the API; recomputed before every flush
    COMPUTED_FIELDS = ('progress', 'status', 'actual_completion_date', 'completed_at')

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[Optional[int]] = mapped_column(ForeignKey('clients.id', ondelete='SET NULL'), nullable=True, index=True)

    business_info: Mapped[dict] = mapped_column(JSON, default=dict)
    pre_onboarding: Mapped[dict] = mapped_column(JSON, default=dict)
    needs_assessment: Mapped[dict] = mapped_column(JSON, default=dict)
    service_proposal: Mapped[dict] = mapped_column(JSON, default=dict)
    follow_up: Mapped[dict] = mapped_column(JSON, default=dict)
    feedback: Mapped[dict] = mapped_column(JSON, default=dict)

    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=progress_engine.STATUS_PENDING, index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default='medium')
    estimated_completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    actual_completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    stage_deadlines: Mapped[dict] = mapped_column(JSON, default=dict)

    assigned_to_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)
    last_updated_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)

    tags: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True)

    @property
    def company_name(self) -> Optional[str]:
        return progress_engine.stage_data(self, 'business_info').get('company_name')


# Concurrent writers are not coordinated: each save recomputes from its own
# in-memory copy and the later flush wins for the whole row.
def _recompute(target: Onboarding, is_new: bool):
    was_completed = target.status == progress_engine.STATUS_COMPLETED
    progress_engine.apply_persist_rules(target, utcnow(), is_new=is_new)
    if target.status == progress_engine.STATUS_COMPLETED and not was_completed:
        log.info('Onboarding %s completed', target.id if target.id is not None else '(new)')


@event.listens_for(Onboarding, 'before_insert')
def _onboarding_before_insert(mapper, connection, target):
    _recompute(target, is_new=True)


@event.listens_for(Onboarding, 'before_update')
def _onboarding_before_update(mapper, connection, target):
    _recompute(target, is_new=False)
