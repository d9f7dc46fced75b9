from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean, ForeignKey, DateTime

from salonops.utils.dates import utcnow
from salonops.models.authz import Base


class Reminder(Base):
    __tablename__ = 'reminders'
    TYPES = ('follow-up', 'meeting', 'deadline', 'review', 'custom')
    PRIORITIES = ('low', 'medium', 'high', 'urgent')
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(1000))
    type: Mapped[str] = mapped_column(String(16), nullable=False, default='custom')
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default='medium')
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_smart_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    onboarding_id: Mapped[Optional[int]] = mapped_column(ForeignKey('onboardings.id', ondelete='SET NULL'), nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(128))
    stage: Mapped[Optional[str]] = mapped_column(String(32))
    created_by: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False, index=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
