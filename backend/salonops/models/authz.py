from __future__ import annotations
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, ForeignKey, JSON, UniqueConstraint, DateTime
from typing import Optional, List
from datetime import datetime

from salonops.utils.dates import utcnow

Base = declarative_base()


class User(Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default='sales')
    user_type: Mapped[str] = mapped_column(String(16), nullable=False, default='staff')
    department: Mapped[Optional[str]] = mapped_column(String(32))
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    position: Mapped[Optional[str]] = mapped_column(String(64))
    # Non-owning back-reference, only meaningful for client-type users
    client_id: Mapped[Optional[int]] = mapped_column(ForeignKey('clients.id', ondelete='SET NULL'), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    permissions: Mapped[List['UserPermission']] = relationship(
        'UserPermission', back_populates='user', cascade='all, delete-orphan', order_by='UserPermission.id'
    )

    def set_password(self, raw: str):
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        from werkzeug.security import check_password_hash
        return check_password_hash(self.password_hash, raw)


class UserPermission(Base):
    __tablename__ = 'user_permissions'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    module: Mapped[str] = mapped_column(String(32), nullable=False)
    actions: Mapped[list] = mapped_column(JSON, default=list)
    level: Mapped[str] = mapped_column(String(8), nullable=False, default='view')

    user = relationship('User', back_populates='permissions')

    # one grant per module per user
    __table_args__ = (UniqueConstraint('user_id', 'module', name='uq_user_permission_module'),)
