"""initial schema: users, grants, clients, onboardings, reminders, audit

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('business_name', sa.String(length=128), nullable=False),
        sa.Column('business_type', sa.String(length=32), nullable=False),
        sa.Column('contact_name', sa.String(length=64), nullable=False),
        sa.Column('contact_phone', sa.String(length=32), nullable=False),
        sa.Column('contact_email', sa.String(length=128), nullable=False),
        sa.Column('onboarding_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('assigned_sales_agent_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_clients_business_name', 'clients', ['business_name'])
    op.create_index('ix_clients_onboarding_status', 'clients', ['onboarding_status'])

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='sales'),
        sa.Column('user_type', sa.String(length=16), nullable=False, server_default='staff'),
        sa.Column('department', sa.String(length=32)),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('position', sa.String(length=64)),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('last_login', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table('user_permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('module', sa.String(length=32), nullable=False),
        sa.Column('actions', sa.JSON(), nullable=True),
        sa.Column('level', sa.String(length=8), nullable=False, server_default='view'),
        sa.UniqueConstraint('user_id', 'module', name='uq_user_permission_module')
    )
    op.create_index('ix_user_permissions_user_id', 'user_permissions', ['user_id'])

    op.create_table('onboardings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True),
        sa.Column('business_info', sa.JSON(), nullable=True),
        sa.Column('pre_onboarding', sa.JSON(), nullable=True),
        sa.Column('needs_assessment', sa.JSON(), nullable=True),
        sa.Column('service_proposal', sa.JSON(), nullable=True),
        sa.Column('follow_up', sa.JSON(), nullable=True),
        sa.Column('feedback', sa.JSON(), nullable=True),
        sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('estimated_completion_date', sa.DateTime(timezone=True)),
        sa.Column('actual_completion_date', sa.DateTime(timezone=True)),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('stage_deadlines', sa.JSON(), nullable=True),
        sa.Column('assigned_to_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('last_updated_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('notes', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_onboardings_client_id', 'onboardings', ['client_id'])
    op.create_index('ix_onboardings_status', 'onboardings', ['status'])
    op.create_index('ix_onboardings_updated_at', 'onboardings', ['updated_at'])

    op.create_table('reminders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=1000)),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='custom'),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_smart_generated', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('onboarding_id', sa.Integer(), sa.ForeignKey('onboardings.id', ondelete='SET NULL'), nullable=True),
        sa.Column('company_name', sa.String(length=128)),
        sa.Column('stage', sa.String(length=32)),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_reminders_due_date', 'reminders', ['due_date'])
    op.create_index('ix_reminders_created_by', 'reminders', ['created_by'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('actor_snapshot', sa.JSON(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('reminders')
    op.drop_table('onboardings')
    op.drop_table('user_permissions')
    op.drop_table('users')
    op.drop_table('clients')
