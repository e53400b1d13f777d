from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ordersync.core.config import APP_TIMEZONE

logger = logging.getLogger(__name__)

T = TypeVar("T")

DAY_MS = 24 * 60 * 60 * 1000
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_END_OF_DAY = time(23, 59, 59, 999000)


class TimeRange(str, Enum):
    today = "today"
    week = "week"
    month = "month"
    year = "year"
    all = "all"
    custom = "custom"


# Rolling windows, not calendar periods.
_ROLLING_DAYS = {
    TimeRange.week: 7,
    TimeRange.month: 30,
    TimeRange.year: 365,
}


def parse_range(value: Any) -> TimeRange:
    if isinstance(value, TimeRange):
        return value
    normalized = str(value or "").strip().lower()
    for candidate in TimeRange:
        if candidate.value == normalized:
            return candidate
    return TimeRange.all


def resolve_timezone(name: str | None = None) -> tzinfo:
    zone_name = (name if name is not None else APP_TIMEZONE) or ""
    if zone_name:
        try:
            return ZoneInfo(zone_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown time zone %s, using server local time", zone_name)
    return datetime.now().astimezone().tzinfo or timezone.utc


def to_epoch_ms(value: datetime) -> int:
    return (value - _EPOCH) // timedelta(milliseconds=1)


def now_ms() -> int:
    return to_epoch_ms(datetime.now(timezone.utc))


def _parse_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return None


def time_window(
    range_name: Any,
    start: Any = None,
    end: Any = None,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> tuple[Optional[int], Optional[int]]:
    """Return the inclusive ``(lower, upper)`` bounds in epoch ms; ``None`` means unbounded."""
    zone = tz or resolve_timezone()
    current = now or datetime.now(zone)
    if current.tzinfo is None:
        current = current.replace(tzinfo=zone)
    selected = parse_range(range_name)

    if selected == TimeRange.today:
        midnight = datetime.combine(current.astimezone(zone).date(), time.min, tzinfo=zone)
        return to_epoch_ms(midnight), None

    if selected in _ROLLING_DAYS:
        return to_epoch_ms(current) - _ROLLING_DAYS[selected] * DAY_MS, None

    if selected == TimeRange.custom:
        start_day = _parse_date(start)
        end_day = _parse_date(end)
        # Missing either bound leaves the set unfiltered.
        if start_day is None or end_day is None:
            return None, None
        lower = datetime.combine(start_day, time.min, tzinfo=zone)
        upper = datetime.combine(end_day, _END_OF_DAY, tzinfo=zone)
        return to_epoch_ms(lower), to_epoch_ms(upper)

    return None, None


def _default_key(record: Any) -> Any:
    if isinstance(record, dict):
        return record.get("created_at")
    return getattr(record, "created_at", None)


def filter_by_range(
    records: Iterable[T],
    range_name: Any,
    start: Any = None,
    end: Any = None,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
    key: Callable[[T], Any] = _default_key,
) -> List[T]:
    """Keep the records whose creation timestamp falls in the named range.

    Callers pass records already scoped to one tenant. Input order is kept.
    """
    lower, upper = time_window(range_name, start, end, now=now, tz=tz)
    items = list(records)
    if lower is None and upper is None:
        return items

    selected: List[T] = []
    for record in items:
        raw = key(record)
        if isinstance(raw, datetime):
            raw = to_epoch_ms(raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc))
        try:
            stamp = int(raw)
        except (TypeError, ValueError):
            continue
        if lower is not None and stamp < lower:
            continue
        if upper is not None and stamp > upper:
            continue
        selected.append(record)
    return selected
