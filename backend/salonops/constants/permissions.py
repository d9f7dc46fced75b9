"""Central enum-like definitions for modules, actions, access levels and roles.
Extend cautiously; stored permission rows reference these codes directly, so never rename one silently.
"""
from __future__ import annotations
from typing import Dict, List, Tuple

MODULES: Tuple[str, ...] = (
    'dashboard', 'clients', 'tasks', 'staff', 'leads', 'meetings',
    'invoices', 'reports', 'settings', 'analytics', 'documents',
)

ACTIONS: Tuple[str, ...] = ('create', 'read', 'update', 'delete', 'approve', 'assign', 'share')

# Ordered: none < view < edit < full
ACCESS_LEVELS: Tuple[str, ...] = ('none', 'view', 'edit', 'full')

ROLES: Tuple[str, ...] = ('admin', 'management', 'hr', 'sales', 'director', 'client')

USER_TYPES: Tuple[str, ...] = ('staff', 'client')

DEPARTMENTS: Tuple[str, ...] = ('management', 'hr', 'sales', 'admin', 'operations', 'finance')

ADMIN_ROLE = 'admin'
CLIENT_USER_TYPE = 'client'

# Client-portal principals see a fixed module set and may only read clients,
# whatever their stored grants say.
CLIENT_PORTAL_MODULES: Tuple[str, ...] = ('dashboard', 'clients', 'documents')
CLIENT_PORTAL_GRANTS: Tuple[Tuple[str, str], ...] = (('clients', 'read'),)

# Grants attached to accounts created through /iam/users/client-account
CLIENT_ACCOUNT_GRANTS: List[Dict] = [
    {'module': 'dashboard', 'actions': ['read'], 'level': 'view'},
    {'module': 'clients', 'actions': ['read'], 'level': 'view'},
    {'module': 'documents', 'actions': ['read', 'create'], 'level': 'edit'},
]

MODULE_LABELS: Dict[str, Tuple[str, str]] = {
    'dashboard': ('Dashboard', 'Main dashboard view'),
    'clients': ('Clients', 'Client management'),
    'tasks': ('Tasks', 'Task management'),
    'staff': ('Staff', 'Staff management'),
    'leads': ('Leads', 'Lead management'),
    'meetings': ('Meetings', 'Meeting management'),
    'invoices': ('Invoices', 'Invoice management'),
    'reports': ('Reports', 'Reports and analytics'),
    'settings': ('Settings', 'System settings'),
    'analytics': ('Analytics', 'Advanced analytics'),
    'documents': ('Documents', 'Document management'),
}

ACTION_LABELS: Dict[str, Tuple[str, str]] = {
    'create': ('Create', 'Create new records'),
    'read': ('Read', 'View records'),
    'update': ('Update', 'Edit records'),
    'delete': ('Delete', 'Delete records'),
    'approve': ('Approve', 'Approve requests'),
    'assign': ('Assign', 'Assign tasks/clients'),
    'share': ('Share', 'Share documents'),
}

LEVEL_LABELS: Dict[str, Tuple[str, str]] = {
    'none': ('No Access', 'No access to module'),
    'view': ('View Only', 'Can only view data'),
    'edit': ('Edit', 'Can view and edit data'),
    'full': ('Full Access', 'Complete access to module'),
}

ROLE_LABELS: Dict[str, Tuple[str, str]] = {
    'admin': ('Administrator', 'Full system access'),
    'management': ('Management', 'Management level access'),
    'hr': ('Human Resources', 'HR department access'),
    'sales': ('Sales', 'Sales team access'),
    'director': ('Director', 'Director level access'),
    'client': ('Client', 'Client portal access'),
}


def _grant(module: str, actions: List[str], level: str) -> Dict:
    return {'module': module, 'actions': actions, 'level': level}


# Role -> default grants applied by the seed script. Admin needs none (bypass).
ROLE_PRESETS: Dict[str, List[Dict]] = {
    'admin': [],
    'management': [
        _grant('dashboard', ['read'], 'view'),
        _grant('clients', ['create', 'read', 'update', 'assign'], 'edit'),
        _grant('tasks', [], 'full'),
        _grant('staff', ['read', 'update'], 'edit'),
        _grant('meetings', [], 'full'),
        _grant('reports', ['read'], 'view'),
        _grant('analytics', ['read'], 'view'),
        _grant('documents', ['read', 'share'], 'edit'),
    ],
    'hr': [
        _grant('dashboard', ['read'], 'view'),
        _grant('staff', [], 'full'),
        _grant('tasks', ['create', 'read', 'update'], 'edit'),
        _grant('documents', ['read', 'create'], 'edit'),
    ],
    'sales': [
        _grant('dashboard', ['read'], 'view'),
        _grant('clients', ['create', 'read', 'update'], 'edit'),
        _grant('leads', [], 'full'),
        _grant('meetings', ['create', 'read'], 'edit'),
        _grant('invoices', ['read'], 'view'),
    ],
    'director': [
        _grant('dashboard', ['read'], 'view'),
        _grant('clients', ['read', 'approve'], 'view'),
        _grant('invoices', ['read', 'approve'], 'view'),
        _grant('reports', [], 'full'),
        _grant('analytics', [], 'full'),
        _grant('settings', ['read'], 'view'),
    ],
    'client': CLIENT_ACCOUNT_GRANTS,
}
