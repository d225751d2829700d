import logging
from typing import Optional

from rest_framework.permissions import BasePermission

from commerce.services.base import ErrorCodes, ServiceResult, service_err
from utils import rbac

logger = logging.getLogger(__name__)

# DRF view action -> RBAC action
VIEW_ACTIONS = {
    "list": rbac.ACTION_READ,
    "retrieve": rbac.ACTION_READ,
    "create": rbac.ACTION_CREATE,
    "update": rbac.ACTION_UPDATE,
    "partial_update": rbac.ACTION_UPDATE,
    "destroy": rbac.ACTION_DELETE,
}


def check_user_auth(user) -> Optional[ServiceResult]:
    """Failed result when ``user`` is not authenticated, otherwise None."""
    if user is None or not getattr(user, "is_authenticated", False):
        return service_err(ErrorCodes.UNAUTHENTICATED, "Unauthorized")
    return None


def check_user_permission(user, action: str, entity: str) -> bool:
    return rbac.check_user_permission(user, action, entity)


class HasEntityPermission(BasePermission):
    """
    RBAC permission for store management views.

    The view declares ``permission_entity`` (e.g. "coupon") and may map its
    custom actions through ``permission_actions``.
    """

    message = "You do not have permission to perform this action."

    def has_permission(self, request, view):
        if check_user_auth(request.user) is not None:
            return False

        entity = getattr(view, "permission_entity", None)
        view_action = getattr(view, "action", None) or request.method.lower()
        actions = {**VIEW_ACTIONS, **getattr(view, "permission_actions", {})}
        action = actions.get(view_action)
        if entity is None or action is None:
            logger.warning(f"No permission mapping for {type(view).__name__}.{view_action}")
            return False
        return check_user_permission(request.user, action, entity)
