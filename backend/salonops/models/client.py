from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean, DateTime

from salonops.utils.dates import utcnow
from salonops.models.authz import Base


class Client(Base):
    __tablename__ = 'clients'
    BUSINESS_TYPES = ('salon', 'barbershop', 'spa', 'other')
    ONBOARDING_STATUSES = ('pending', 'in-progress', 'completed', 'on-hold')
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    business_type: Mapped[str] = mapped_column(String(32), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(64), nullable=False)
    contact_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(128), nullable=False)
    onboarding_status: Mapped[str] = mapped_column(String(16), nullable=False, default='pending', index=True)
    assigned_sales_agent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
