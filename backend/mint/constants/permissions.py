"""Central definitions for the permission catalog and the preset roles.
Extend cautiously; never rename permission names silently. Create new ones and
retire old ones via migration if needed.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

RESOURCE_ACTIONS: Dict[str, List[str]] = {
    'user': ['create', 'read', 'update', 'delete'],
    'merchant': ['create', 'read', 'update', 'delete'],
    'outlet': ['create', 'read', 'update', 'delete'],
    'terminal': ['create', 'read', 'update', 'delete'],
    'invoice': ['create', 'read', 'update', 'delete'],
    'payment': ['create', 'read', 'update'],
    'analytics': ['read'],
    'payout': ['create', 'read', 'update'],
    'fee': ['read', 'update'],
}

_ACTION_VERBS = {'create': 'Create', 'read': 'View', 'update': 'Update', 'delete': 'Delete'}


def permission_name(resource: str, action: str) -> str:
    return f'{resource}:{action}'


def build_permission_catalog() -> List[Tuple[str, str, str, str]]:
    """(name, resource, action, description) for every catalog entry."""
    rows = []
    for resource, actions in RESOURCE_ACTIONS.items():
        for action in actions:
            verb = _ACTION_VERBS.get(action, action.capitalize())
            rows.append((permission_name(resource, action), resource, action, f'{verb} {resource}s'))
    return rows


PERMISSION_CATALOG = build_permission_catalog()


@dataclass(frozen=True)
class RoleRule:
    """Selection predicate over the permission catalog.

    ``resources=None`` selects every resource. Exclusions apply afterwards.
    """
    description: str
    resources: Optional[FrozenSet[str]] = None
    exclude_names: FrozenSet[str] = frozenset()
    exclude_actions: FrozenSet[str] = frozenset()

    def matches(self, permission) -> bool:
        if self.resources is not None and permission.resource not in self.resources:
            return False
        if permission.name in self.exclude_names:
            return False
        return permission.action not in self.exclude_actions


SUPER_ADMIN = 'Super Admin'
ADMIN = 'Admin'
MERCHANT_ADMIN = 'Merchant Admin'
OUTLET_MANAGER = 'Outlet Manager'
CASHIER = 'Cashier'
ANALYST = 'Analyst'

ROLE_PRESETS: Dict[str, RoleRule] = {
    SUPER_ADMIN: RoleRule('Full system access with all permissions'),
    ADMIN: RoleRule('Administrative access with most permissions', exclude_names=frozenset({'user:delete'})),
    MERCHANT_ADMIN: RoleRule(
        'Merchant-level administrative access',
        resources=frozenset({'merchant', 'outlet', 'terminal', 'invoice', 'payment', 'analytics', 'payout', 'fee'}),
    ),
    OUTLET_MANAGER: RoleRule(
        'Outlet management permissions',
        resources=frozenset({'outlet', 'terminal', 'invoice', 'payment'}),
    ),
    CASHIER: RoleRule(
        'Basic cashier permissions for transactions',
        resources=frozenset({'invoice', 'payment'}),
        exclude_actions=frozenset({'delete'}),
    ),
    ANALYST: RoleRule('Analytics and reporting permissions', resources=frozenset({'analytics'})),
}

# user type -> role bound automatically at registration
DEFAULT_ROLE_NAMES: Dict[str, str] = {
    'ADMIN': 'admin',
    'MERCHANT': 'merchant',
    'INDIVIDUAL': 'individual',
}
