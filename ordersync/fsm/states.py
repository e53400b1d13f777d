from enum import Enum


class OrderStatus(str, Enum):
    draft = "DRAFT"
    processing = "PROCESSING"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


INITIAL_STATUS = OrderStatus.draft
TERMINAL_STATUSES = {OrderStatus.completed, OrderStatus.cancelled}


def parse_status(value) -> OrderStatus | None:
    if isinstance(value, OrderStatus):
        return value
    normalized = str(value or "").strip().upper()
    for status in OrderStatus:
        if status.value == normalized:
            return status
    return None
