#!/usr/bin/env python
"""Idempotent seed script for staff users and their module grants.

Usage:
    python backend/scripts/seed_users.py               # seed normally
    python backend/scripts/seed_users.py --show-users  # print user -> grant summary (after ensuring seed)
    python backend/scripts/seed_users.py --dry-run     # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from salonops import create_app, get_db, get_authz  # type: ignore
from salonops.constants.permissions import ROLE_PRESETS
from salonops.models.authz import Base, User, UserPermission

SEED_DOMAIN = 'salonops.local'
DEFAULT_PASSWORD = 'ChangeMe123!'


def ensure_user(session, name: str, email: str, role: str, password: str):
    """Create the user with its role preset when absent; existing users are left untouched."""
    existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing:
        return False
    user = User(name=name, email=email, password_hash='', role=role, user_type='staff')
    user.set_password(password)
    for grant in get_authz().config.parse_grants(ROLE_PRESETS.get(role, [])):
        user.permissions.append(UserPermission(module=grant.module, actions=sorted(grant.actions), level=grant.level))
    session.add(user)
    return True


def ensure_seed_users(session):
    created = 0
    admin_email = os.getenv('SEED_ADMIN_EMAIL', f'admin@{SEED_DOMAIN}').lower()
    admin_password = os.getenv('SEED_ADMIN_PASSWORD', DEFAULT_PASSWORD)
    if ensure_user(session, 'Administrator', admin_email, 'admin', admin_password):
        print(f"[INFO] Created initial admin user {admin_email} with temporary password.")
        created += 1
    for role in ROLE_PRESETS:
        # client accounts are always linked to a client record; created through the API
        if role in ('admin', 'client'):
            continue
        if ensure_user(session, role.title(), f'{role}@{SEED_DOMAIN}', role, DEFAULT_PASSWORD):
            created += 1
    return created


def print_user_summary(session):
    users = session.execute(select(User).order_by(User.id)).scalars().all()
    if not users:
        print("[INFO] No users present.")
        return
    email_w = max(len(u.email) for u in users)
    print(f"{'Email'.ljust(email_w)} | {'Role'.ljust(10)} | Grants")
    print('-' * (email_w + 40))
    for u in users:
        grants = ', '.join(f"{p.module}:{p.level}" for p in u.permissions) or '-'
        print(f"{u.email.ljust(email_w)} | {u.role.ljust(10)} | {grants}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed one staff user per role with preset grants",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_users.py\n  dry run: seed_users.py --dry-run\n  show users: seed_users.py --show-users\n""")
    )
    p.add_argument('--show-users', action='store_true', help='Print users and their grants after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM users LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

    with app.app_context():
        session = get_db()
        try:
            created = ensure_seed_users(session)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Users would create: {created}")
            else:
                session.commit()
                print(f"[DONE] Users created: {created}")
            if args.show_users:
                print('\nUser Grant Summary:')
                print_user_summary(session)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
