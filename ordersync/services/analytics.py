from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List

from ordersync.core.roles import Role, parse_role
from ordersync.fsm.states import OrderStatus, parse_status


def _first_name(full_name: str) -> str:
    parts = (full_name or "").split()
    return parts[0] if parts else ""


def summarize_orders(orders: Iterable[Any], users: Iterable[Any]) -> Dict[str, Any]:
    """Dashboard figures over already tenant-scoped, time-filtered orders.

    Only EMPLOYEE users get a row in ``orders_by_employee``; orders created by
    admins or by deleted users count in the totals only.
    """
    orders = list(orders)
    employees = [user for user in users if parse_role(getattr(user, "role", None)) == Role.employee]

    by_status = Counter(parse_status(getattr(order, "status", None)) for order in orders)
    by_creator = Counter(getattr(order, "created_by", None) for order in orders)

    rows: List[Dict[str, Any]] = [
        {
            "user_id": user.id,
            "name": _first_name(user.name),
            "full_name": user.name,
            "count": by_creator.get(user.id, 0),
        }
        for user in employees
    ]
    # Stable sort keeps roster order among equal counts.
    rows.sort(key=lambda row: row["count"], reverse=True)

    return {
        "total_orders": len(orders),
        "draft_orders": by_status.get(OrderStatus.draft, 0),
        "processing_orders": by_status.get(OrderStatus.processing, 0),
        "completed_orders": by_status.get(OrderStatus.completed, 0),
        "cancelled_orders": by_status.get(OrderStatus.cancelled, 0),
        "employee_count": len(employees),
        "orders_by_employee": rows,
    }
