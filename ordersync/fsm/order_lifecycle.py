"""Order status state machine.

DRAFT -> PROCESSING -> COMPLETED. CANCELLED is a terminal value with no
trigger wired to it. Only admins move orders forward; nothing moves back.
"""
from __future__ import annotations

from typing import Any

from ordersync.core.roles import Role, parse_role
from ordersync.fsm.states import TERMINAL_STATUSES, OrderStatus, parse_status
from ordersync.services.outcomes import ErrorKind, Outcome

TRANSITIONS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.draft: OrderStatus.processing,
    OrderStatus.processing: OrderStatus.completed,
}


def next_status(current: Any) -> OrderStatus | None:
    status = parse_status(current)
    if status is None:
        return None
    return TRANSITIONS.get(status)


def is_terminal(current: Any) -> bool:
    return parse_status(current) in TERMINAL_STATUSES


def can_transition(current: Any, requested: Any) -> bool:
    requested_status = parse_status(requested)
    return requested_status is not None and next_status(current) == requested_status


def transition(current: Any, requested: Any, actor: Any) -> Outcome:
    """Validate moving an order from ``current`` to ``requested`` on behalf of ``actor``.

    The role is checked first: a non-admin gets ``unauthorized`` whatever the
    states involved. Returns the new :class:`OrderStatus` on success.
    """
    if parse_role(getattr(actor, "role", None)) != Role.admin:
        return Outcome.failure(ErrorKind.unauthorized, "Only admins can change order status")

    current_status = parse_status(current)
    requested_status = parse_status(requested)
    if current_status is None or requested_status is None:
        return Outcome.failure(ErrorKind.invalid_transition, "Unknown order status")

    if not can_transition(current_status, requested_status):
        return Outcome.failure(
            ErrorKind.invalid_transition,
            f"Cannot move order from {current_status.value} to {requested_status.value}",
        )
    return Outcome.success(requested_status)


def advance(current: Any, actor: Any) -> Outcome:
    target = next_status(current)
    if target is None:
        if parse_role(getattr(actor, "role", None)) != Role.admin:
            return Outcome.failure(ErrorKind.unauthorized, "Only admins can change order status")
        return Outcome.failure(ErrorKind.invalid_transition, "Order is already in a final state")
    return transition(current, target, actor)
