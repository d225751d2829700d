import logging
from typing import Iterable

from django.contrib.auth import get_user_model

# Canonical role names (Django group names, superusers hold every role)
ROLE_CUSTOMER = "customer"
ROLE_STORE_MANAGER = "store_manager"

# Actions
ACTION_CREATE = "create"
ACTION_READ = "read"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"

# entity -> action -> roles allowed (None: any authenticated user)
PERMISSIONS = {
    "cart": {
        ACTION_CREATE: None,
        ACTION_READ: None,
        ACTION_UPDATE: None,
        ACTION_DELETE: None,
    },
    "coupon": {
        ACTION_CREATE: [ROLE_STORE_MANAGER],
        ACTION_READ: [ROLE_STORE_MANAGER],
        ACTION_UPDATE: [ROLE_STORE_MANAGER],
        ACTION_DELETE: [ROLE_STORE_MANAGER],
    },
    "tax_options": {
        ACTION_READ: [ROLE_STORE_MANAGER],
        ACTION_UPDATE: [ROLE_STORE_MANAGER],
    },
}

logger = logging.getLogger(__name__)


def _fetch_user_from_db(user):
    """Fetch a fresh copy of the user from the DB with only the fields we need.

    Returns None if the user is not authenticated.
    """
    if not getattr(user, "is_authenticated", False):
        return None
    User = get_user_model()
    return User.objects.only("id", "is_superuser").filter(pk=getattr(user, "pk", None)).first()


def is_store_manager(user) -> bool:
    """Store manager check, verified against the database."""
    db_user = _fetch_user_from_db(user)
    if not db_user:
        return False
    return bool(db_user.is_superuser or db_user.groups.filter(name=ROLE_STORE_MANAGER).exists())


def has_role(user, role: str) -> bool:
    if role == ROLE_STORE_MANAGER:
        return is_store_manager(user)
    if role == ROLE_CUSTOMER:
        return bool(getattr(user, "is_authenticated", False))
    db_user = _fetch_user_from_db(user)
    return bool(db_user and db_user.groups.filter(name=role).exists())


def has_any_role(user, roles: Iterable[str]) -> bool:
    return any(has_role(user, r) for r in roles)


def check_user_permission(user, action: str, entity: str) -> bool:
    """Whether ``user`` may perform ``action`` on ``entity``. Unknown pairs are denied."""
    if not getattr(user, "is_authenticated", False):
        return False
    actions = PERMISSIONS.get(entity)
    if actions is None or action not in actions:
        logger.warning("RBAC unknown permission: entity=%s action=%s", entity, action)
        return False
    roles = actions[action]
    if roles is None:
        return True
    return has_any_role(user, roles)
