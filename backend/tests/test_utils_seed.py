"""Test seeding utilities to reduce duplication.

These helpers centralize creation of users with module grants, client
records and onboarding rows, plus bearer headers for them.
"""
from typing import Dict, List, Optional
from flask_jwt_extended import create_access_token
from salonops import get_db
from salonops.models.authz import User, UserPermission
from salonops.models.client import Client


def grant(module: str, actions: List[str], level: str = 'view') -> Dict:
    return {'module': module, 'actions': actions, 'level': level}


def ensure_user(email: str, role: str = 'sales', user_type: str = 'staff', grants: Optional[List[Dict]] = None,
                client_id: Optional[int] = None, password: str = 'pw', is_active: bool = True) -> User:
    """Idempotently ensure a user exists (by email) with exactly ``grants``."""
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(name=email.split('@')[0], email=email, password_hash='')
        u.set_password(password)
        session.add(u)
    u.role = role
    u.user_type = user_type
    u.client_id = client_id
    u.is_active = is_active
    u.permissions.clear()
    session.flush()
    for g in grants or []:
        u.permissions.append(UserPermission(module=g['module'], actions=list(g['actions']), level=g['level']))
    session.commit()
    return u


def ensure_client(business_name: str, business_type: str = 'salon') -> Client:
    session = get_db()
    c = session.query(Client).filter_by(business_name=business_name).one_or_none()
    if not c:
        c = Client(
            business_name=business_name,
            business_type=business_type,
            contact_name='Owner',
            contact_phone='555-0100',
            contact_email=f"{business_name.lower().replace(' ', '')}@example.com",
        )
        session.add(c); session.commit()
    return c


def auth_headers(app, user: User) -> Dict[str, str]:
    with app.app_context():
        token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}


def login(client, email: str, password: str = 'pw') -> Dict[str, str]:
    resp = client.post('/iam/auth/login', json={'email': email, 'password': password})
    assert resp.status_code == 200
    return {'Authorization': f"Bearer {resp.get_json()['access_token']}"}


# Staff who manage onboarding end to end
ONBOARDING_GRANTS = [grant('clients', ['create', 'read', 'update'], 'edit')]


__all__ = ['grant', 'ensure_user', 'ensure_client', 'auth_headers', 'login', 'ONBOARDING_GRANTS']
