"""Opening-time helpers: open-now checks and next opening for service cards."""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from .models import OpenTime

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

APPOINTMENT_KEYWORDS = (
    "appointment",
    "referral",
    "call ahead",
    "contact us first",
    "by arrangement",
    "booking required",
    "pre-arranged",
)
APPOINTMENT_CATEGORIES = {"medical", "health"}
APPOINTMENT_SUB_CATEGORIES = {"gp", "counselling", "mental-health", "dentist"}


@dataclass(frozen=True)
class OpeningStatus:
    is_open: bool
    next_open_day: Optional[str] = None
    next_open_time: Optional[str] = None
    is_appointment_only: bool = False


def _to_minutes(value: Union[int, str, None]) -> Optional[int]:
    """Convert ``930``/``"0930"``/``"09:30"`` to minutes after midnight."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if ":" in text:
            hours, _, minutes = text.partition(":")
            try:
                return int(hours) * 60 + int(minutes)
            except ValueError:
                return None
        if not text.isdigit():
            return None
        value = int(text)
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    return (value // 100) * 60 + value % 100


def format_time(value: Union[int, str]) -> str:
    minutes = _to_minutes(value)
    if minutes is None:
        return str(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_open_times(open_times: Optional[Iterable[Any]]) -> List[OpenTime]:
    """Build ``OpenTime`` values from dicts in either casing the API uses."""
    if open_times is None:
        return []
    slots = []
    for slot in open_times:
        if isinstance(slot, OpenTime):
            slots.append(slot)
            continue
        if not isinstance(slot, Mapping):
            continue
        day = slot.get("Day", slot.get("day"))
        start = slot.get("StartTime", slot.get("start"))
        end = slot.get("EndTime", slot.get("end"))
        try:
            day = int(day)
        except (TypeError, ValueError):
            continue
        if start is None or end is None:
            continue
        slots.append(OpenTime(day=day, start=start, end=end))
    return slots


def get_opening_status(open_times: Optional[Iterable[Any]], now: Optional[datetime] = None) -> OpeningStatus:
    """Whether a service is open at ``now`` and, if not, when it next opens."""
    slots = normalize_open_times(open_times)
    if not slots:
        return OpeningStatus(is_open=False)

    now = now or datetime.now()
    current_day = now.isoweekday()
    current_minutes = now.hour * 60 + now.minute

    for slot in slots:
        start, end = _to_minutes(slot.start), _to_minutes(slot.end)
        if slot.day == current_day and start is not None and end is not None and start <= current_minutes < end:
            return OpeningStatus(is_open=True)

    def _order(slot: OpenTime):
        days_ahead = (slot.day - current_day) % 7
        return days_ahead, _to_minutes(slot.start) or 0

    for slot in sorted(slots, key=_order):
        start = _to_minutes(slot.start)
        if start is None or not 1 <= slot.day <= 7:
            continue
        if slot.day != current_day or start > current_minutes:
            return OpeningStatus(False, DAY_NAMES[slot.day - 1], format_time(slot.start))

    # Only earlier slots today remain, so the next opening is a week away
    first = min((s for s in slots if 1 <= s.day <= 7), key=_order, default=None)
    if first is None:
        return OpeningStatus(is_open=False)
    return OpeningStatus(False, DAY_NAMES[first.day - 1], format_time(first.start))


def is_open_now(open_times: Optional[Iterable[Any]], now: Optional[datetime] = None) -> bool:
    return get_opening_status(open_times, now).is_open


def is_appointment_only(category: Any = "", sub_category: Any = "", description: Any = "") -> bool:
    """Telephone services, medical appointments and descriptions asking people to book first."""
    category = category if isinstance(category, str) else ""
    sub_category = sub_category if isinstance(sub_category, str) else ""
    text = description.lower() if isinstance(description, str) else ""

    if sub_category == "telephone":
        return True
    if any(keyword in text for keyword in APPOINTMENT_KEYWORDS):
        return True
    return category in APPOINTMENT_CATEGORIES and sub_category in APPOINTMENT_SUB_CATEGORIES


def get_service_opening_status(
    open_times: Optional[Iterable[Any]],
    category: Any = "",
    sub_category: Any = "",
    description: Any = "",
    now: Optional[datetime] = None,
) -> OpeningStatus:
    """``get_opening_status`` plus the service's appointment-only flag."""
    status = get_opening_status(open_times, now)
    return replace(status, is_appointment_only=is_appointment_only(category, sub_category, description))
