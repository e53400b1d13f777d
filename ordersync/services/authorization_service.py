from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from fastapi import HTTPException, Request, status

from ordersync.core.roles import VIEWS_BY_ROLE, Role, View, parse_role
from ordersync.fsm.states import OrderStatus, parse_status
from ordersync.services.outcomes import ErrorKind, Outcome, raise_for_outcome

logger = logging.getLogger(__name__)


class Action(str, Enum):
    view = "view"
    create_order = "create_order"
    delete_order = "delete_order"
    transition_order = "transition_order"
    create_product = "create_product"
    delete_product = "delete_product"
    create_employee = "create_employee"
    delete_employee = "delete_employee"
    update_profile = "update_profile"


_ADMIN_ONLY = {
    Action.transition_order,
    Action.create_product,
    Action.delete_product,
    Action.create_employee,
    Action.delete_employee,
}


def _parse_view(value: Any) -> View | None:
    if isinstance(value, View):
        return value
    normalized = str(value or "").strip().lower()
    for view in View:
        if view.value == normalized:
            return view
    return None


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _same_tenant(actor: Any, target: Any) -> bool:
    if target is None or isinstance(target, (View, str)):
        return True
    target_tenant = getattr(target, "tenant_id", None)
    if target_tenant is None:
        return True
    actor_tenant = _as_int(getattr(actor, "tenant_id", None))
    return actor_tenant is not None and actor_tenant == _as_int(target_tenant)


def _is_self(actor: Any, target: Any) -> bool:
    actor_id = _as_int(getattr(actor, "user_id", None))
    if actor_id is None:
        return False
    target_id = target if isinstance(target, (int, str)) else getattr(target, "id", None)
    return actor_id == _as_int(target_id)


def visible_views(actor: Any) -> list[View]:
    role = parse_role(getattr(actor, "role", None))
    if role is None:
        return []
    return list(VIEWS_BY_ROLE[role])


def can_perform(actor: Any, action: Action, target: Any = None) -> bool:
    """Decide whether ``actor`` may perform ``action`` on ``target``.

    ``target`` is a :class:`View` for ``Action.view``, an order for order actions,
    a user (or user id) for employee / profile actions. Never raises.
    """
    if actor is None:
        return False
    role = parse_role(getattr(actor, "role", None))
    if role is None:
        return False
    if not _same_tenant(actor, target):
        return False

    if action == Action.view:
        view = _parse_view(target)
        return view is not None and view in VIEWS_BY_ROLE[role]

    if action == Action.delete_employee and _is_self(actor, target):
        return False

    if action in _ADMIN_ONLY:
        return role == Role.admin

    if action == Action.create_order:
        return True

    if action == Action.delete_order:
        if role == Role.admin:
            return True
        return target is not None and parse_status(getattr(target, "status", None)) == OrderStatus.draft

    if action == Action.update_profile:
        return target is None or _is_self(actor, target)

    return False


def authorize(actor: Any, action: Action, target: Any = None) -> Outcome:
    if action == Action.delete_employee and _is_self(actor, target):
        return Outcome.failure(ErrorKind.self_deletion_rejected)
    if can_perform(actor, action, target):
        return Outcome.success(target)
    return Outcome.failure(ErrorKind.unauthorized)


def check_employee_deletion(actor: Any, target_id: Any, target: Any = None) -> Outcome:
    """Self-deletion is rejected before role or existence are considered."""
    if _is_self(actor, target_id):
        return Outcome.failure(ErrorKind.self_deletion_rejected)
    if parse_role(getattr(actor, "role", None)) != Role.admin:
        return Outcome.failure(ErrorKind.unauthorized)
    # Other tenants' users are reported as missing, not forbidden.
    if target is None or not _same_tenant(actor, target):
        return Outcome.failure(ErrorKind.not_found, "User not found")
    return authorize(actor, Action.delete_employee, target)


class AuthorizationService:
    """HTTP-facing wrapper: logs denials and raises for the routers."""

    @staticmethod
    def log_access_denied(*, reason: str, actor: Any, action: str, request: Request | None) -> None:
        endpoint = f"{request.method} {request.url.path}" if request is not None else None
        logger.warning(
            "Access denied (%s): user_id=%s user_role=%s tenant_id=%s action=%s endpoint=%s",
            reason,
            getattr(actor, "user_id", None),
            getattr(actor, "role", None),
            getattr(actor, "tenant_id", None),
            action,
            endpoint,
        )

    @classmethod
    def ensure(cls, *, actor: Any, action: Action, target: Any = None, request: Request | None = None) -> Any:
        outcome = authorize(actor, action, target)
        if not outcome.ok:
            cls.log_access_denied(reason=outcome.error.value, actor=actor, action=action.value, request=request)
        return raise_for_outcome(outcome)

    @classmethod
    def ensure_view(cls, *, actor: Any, view: View, request: Request | None = None) -> None:
        if not can_perform(actor, Action.view, view):
            cls.log_access_denied(reason="view_denied", actor=actor, action=f"view:{view.value}", request=request)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="View not available for this role")

    @classmethod
    def ensure_outcome(cls, outcome: Outcome, *, actor: Any, action: str, request: Request | None = None) -> Any:
        if not outcome.ok and outcome.error != ErrorKind.not_found:
            cls.log_access_denied(reason=outcome.error.value, actor=actor, action=action, request=request)
        return raise_for_outcome(outcome)
