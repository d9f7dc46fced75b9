"""Role / module / action / access-level authorization.

Every decision here is a pure function of a ``Principal`` and the immutable
``AccessConfig`` the engine was built with. Request gating (decorators.auth)
and the UI-facing check endpoint (routes.iam) share one engine instance held
in ``app.extensions``; nothing else restates the rules.

Action membership and access level are two independent gates: a grant passes
``authorize`` when the action is listed OR the level is ``full``. ``view`` and
``edit`` levels imply no actions on their own.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from salonops.constants import permissions as perm_constants
from salonops.errors import ValidationError


@dataclass(frozen=True)
class PermissionGrant:
    module: str
    actions: FrozenSet[str] = frozenset()
    level: str = 'view'

    def as_dict(self) -> Dict[str, Any]:
        return {'module': self.module, 'actions': sorted(self.actions), 'level': self.level}


@dataclass(frozen=True)
class Principal:
    id: Optional[int]
    role: str
    user_type: str
    permissions: Tuple[PermissionGrant, ...] = ()
    client_id: Optional[int] = None
    is_active: bool = True

    def grant_for(self, module: str) -> Optional[PermissionGrant]:
        for grant in self.permissions:
            if grant.module == module:
                return grant
        return None


@dataclass(frozen=True)
class AccessConfig:
    modules: Tuple[str, ...]
    actions: Tuple[str, ...]
    levels: Tuple[str, ...]
    roles: Tuple[str, ...]
    user_types: Tuple[str, ...]
    admin_role: str = 'admin'
    client_user_type: str = 'client'
    client_modules: Tuple[str, ...] = ()
    client_grants: FrozenSet[Tuple[str, str]] = field(default_factory=frozenset)

    @classmethod
    def default(cls) -> 'AccessConfig':
        return cls(
            modules=perm_constants.MODULES,
            actions=perm_constants.ACTIONS,
            levels=perm_constants.ACCESS_LEVELS,
            roles=perm_constants.ROLES,
            user_types=perm_constants.USER_TYPES,
            admin_role=perm_constants.ADMIN_ROLE,
            client_user_type=perm_constants.CLIENT_USER_TYPE,
            client_modules=perm_constants.CLIENT_PORTAL_MODULES,
            client_grants=frozenset(perm_constants.CLIENT_PORTAL_GRANTS),
        )

    def level_rank(self, level: str) -> int:
        self.require(level, self.levels, 'level')
        return self.levels.index(level)

    @staticmethod
    def require(value: Any, allowed: Iterable[str], field_name: str) -> str:
        if not isinstance(value, str) or value not in allowed:
            raise ValidationError(f'Invalid {field_name}: {value!r}')
        return value

    def parse_grants(self, raw: Any) -> Tuple[PermissionGrant, ...]:
        """Validate a list of ``{module, actions, level}`` dicts into grants.

        Rejects unknown module/action/level values and a second entry for the
        same module (module is the dedup key).
        """
        if raw is None:
            return ()
        if not isinstance(raw, list):
            raise ValidationError('permissions must be a list')
        grants: List[PermissionGrant] = []
        seen = set()
        for entry in raw:
            if not isinstance(entry, dict):
                raise ValidationError('permission entries must be objects')
            module = self.require(entry.get('module'), self.modules, 'module')
            if module in seen:
                raise ValidationError(f'Duplicate permission entry for module {module}')
            seen.add(module)
            actions = entry.get('actions') or []
            if not isinstance(actions, list):
                raise ValidationError('actions must be a list')
            for act in actions:
                self.require(act, self.actions, 'action')
            level = self.require(entry.get('level', 'view'), self.levels, 'level')
            grants.append(PermissionGrant(module=module, actions=frozenset(actions), level=level))
        return tuple(grants)

    def build_principal(self, *, id: Optional[int], role: str, user_type: str, permissions: Any = None,
                        client_id: Optional[int] = None, is_active: bool = True) -> Principal:
        return Principal(
            id=id,
            role=self.require(role, self.roles, 'role'),
            user_type=self.require(user_type, self.user_types, 'user_type'),
            permissions=self.parse_grants(permissions),
            client_id=client_id,
            is_active=is_active,
        )


class AuthorizationEngine:
    """Stateless decision functions over an ``AccessConfig``."""

    def __init__(self, config: Optional[AccessConfig] = None):
        self.config = config or AccessConfig.default()

    def _is_admin(self, principal: Principal) -> bool:
        return principal.role == self.config.admin_role

    def _is_client(self, principal: Principal) -> bool:
        return principal.user_type == self.config.client_user_type

    def authorize(self, principal: Principal, module: str, action: str) -> bool:
        cfg = self.config
        cfg.require(module, cfg.modules, 'module')
        cfg.require(action, cfg.actions, 'action')
        if self._is_admin(principal):
            return True
        if self._is_client(principal):
            # hardcoded portal restriction dominates stored grants
            return (module, action) in cfg.client_grants
        grant = principal.grant_for(module)
        if grant is None:
            return False
        return action in grant.actions or grant.level == 'full'

    def accessible_modules(self, principal: Principal) -> List[str]:
        if self._is_admin(principal):
            return list(self.config.modules)
        if self._is_client(principal):
            return list(self.config.client_modules)
        visible = {g.module for g in principal.permissions if g.level != 'none'}
        return [m for m in self.config.modules if m in visible]

    def check_module_access(self, principal: Principal, module: str) -> bool:
        self.config.require(module, self.config.modules, 'module')
        return module in self.accessible_modules(principal)

    def ensure_own_data(self, principal: Principal, resource_owner_id: Any = None) -> bool:
        if self._is_admin(principal):
            return True
        if self._is_client(principal):
            if resource_owner_id is None:
                return True
            if principal.client_id is None:
                return False
            return str(resource_owner_id) == str(principal.client_id)
        return True

    def permission_level(self, principal: Principal, module: str) -> str:
        if self._is_admin(principal):
            return 'full'
        grant = principal.grant_for(module)
        return grant.level if grant else 'none'

    def has_level(self, principal: Principal, module: str, minimum: str) -> bool:
        """Level-threshold check, independent of the action lists."""
        cfg = self.config
        return cfg.level_rank(self.permission_level(principal, module)) >= cfg.level_rank(minimum)

    def principal_from_user(self, user) -> Principal:
        raw = [
            {'module': p.module, 'actions': list(p.actions or []), 'level': p.level}
            for p in (user.permissions or [])
        ]
        return self.config.build_principal(
            id=user.id,
            role=user.role,
            user_type=user.user_type,
            permissions=raw,
            client_id=user.client_id,
            is_active=bool(user.is_active),
        )


__all__ = ['PermissionGrant', 'Principal', 'AccessConfig', 'AuthorizationEngine']
