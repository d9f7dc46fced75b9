from salonops import get_db, get_authz
from salonops.constants.permissions import ROLE_PRESETS, ROLES
from salonops.models.authz import User
from scripts.seed_users import ensure_seed_users, SEED_DOMAIN

# admin bypasses grants; client accounts are created against a client record
SEEDED_ROLES = [r for r in ROLE_PRESETS if r not in ('admin', 'client')]


def _grant_set(grants):
    return {(g.module, tuple(sorted(g.actions)), g.level) for g in grants}


def test_role_presets_parse_cleanly(app_instance):
    assert set(ROLE_PRESETS) == set(ROLES)
    with app_instance.app_context():
        cfg = get_authz().config
        for role, preset in ROLE_PRESETS.items():
            # parse_grants raises on unknown codes and duplicate modules
            assert len(cfg.parse_grants(preset)) == len(preset), role


def test_seed_twice_creates_each_user_once_with_preset_grants(app_instance, monkeypatch):
    monkeypatch.delenv('SEED_ADMIN_EMAIL', raising=False)
    with app_instance.app_context():
        session = get_db()
        first = ensure_seed_users(session)
        session.commit()
        assert first == len(SEEDED_ROLES) + 1
        assert ensure_seed_users(session) == 0
        session.commit()

        cfg = get_authz().config
        admin = session.query(User).filter_by(email=f'admin@{SEED_DOMAIN}').one()
        assert admin.role == 'admin' and list(admin.permissions) == []
        for role in SEEDED_ROLES:
            users = session.query(User).filter_by(email=f'{role}@{SEED_DOMAIN}').all()
            assert len(users) == 1, role
            user = users[0]
            assert user.role == role and user.user_type == 'staff'
            stored = {(p.module, tuple(sorted(p.actions)), p.level) for p in user.permissions}
            assert stored == _grant_set(cfg.parse_grants(ROLE_PRESETS[role])), role
