"""
shiptrack.auth.guard

Authorization guard: decides whether a principal may perform an action.

Responsibilities:
- Map every operation kind onto "authenticated" or "admin-only".
- Deny admin self-deletion regardless of role.
- Surface "authentication required" (401) separately from "denied" (403).
"""

from __future__ import annotations

import enum

from shiptrack.auth.models import Principal
from shiptrack.errors import AuthenticationRequired, AuthorizationDenied


class Action(enum.StrEnum):
    read_shipments = "READ_SHIPMENTS"
    subscribe_shipments = "SUBSCRIBE_SHIPMENTS"
    create_shipment = "CREATE_SHIPMENT"
    update_shipment = "UPDATE_SHIPMENT"
    delete_shipment = "DELETE_SHIPMENT"
    read_profile = "READ_PROFILE"
    change_password = "CHANGE_PASSWORD"
    list_users = "LIST_USERS"
    create_user = "CREATE_USER"
    update_user = "UPDATE_USER"
    delete_user = "DELETE_USER"


class Decision(enum.Enum):
    allow = "ALLOW"
    authentication_required = "AUTHENTICATION_REQUIRED"
    denied = "DENIED"


ADMIN_ONLY: frozenset[Action] = frozenset(
    {
        Action.list_users,
        Action.create_user,
        Action.update_user,
        Action.delete_user,
        Action.delete_shipment,
    }
)


def evaluate(
    principal: Principal | None,
    action: Action,
    *,
    target_user_id: int | None = None,
) -> Decision:
    if principal is None:
        return Decision.authentication_required
    if action in ADMIN_ONLY and not principal.is_admin:
        return Decision.denied
    if action == Action.delete_user and target_user_id == principal.id:
        return Decision.denied
    return Decision.allow


def authorize(
    principal: Principal | None,
    action: Action,
    *,
    target_user_id: int | None = None,
) -> Principal:
    if principal is None:
        raise AuthenticationRequired()
    if evaluate(principal, action, target_user_id=target_user_id) is Decision.denied:
        if action == Action.delete_user and principal.is_admin:
            raise AuthorizationDenied("Cannot delete your own account")
        raise AuthorizationDenied()
    return principal


# --- Module Notes -----------------------------------------------------------
# Scopes ride along on the Principal but no action is gated on them yet.
