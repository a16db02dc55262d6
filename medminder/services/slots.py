# medminder/services/slots.py
from __future__ import annotations

import re
from datetime import date, datetime, time as time_t, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

SLOT_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_slot(value: str) -> time_t:
    """
    "HH:MM" (24-hour, two digits each) -> time
    "8:00", "24:00", "08:60" raise ValueError
    """
    match = SLOT_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"'{value}' is not a valid HH:MM time")
    return time_t(int(match.group(1)), int(match.group(2)))


def normalize_slots(values: Iterable[str]) -> List[str]:
    """Validate every slot and drop duplicates, keeping the first-seen order."""
    seen: List[str] = []
    for value in values:
        parse_slot(value)
        if value not in seen:
            seen.append(value)
    if not seen:
        raise ValueError("at least one time is required")
    return seen


def slot_of(timestamp: datetime) -> str:
    return timestamp.strftime("%H:%M")


def utc_now() -> datetime:
    # DB stores naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_window(day: date) -> Tuple[datetime, datetime]:
    """[midnight UTC of day, midnight UTC of the next day)"""
    start = datetime.combine(day, time_t.min)
    return start, start + timedelta(days=1)


def parse_target_date(value: Optional[str], now: datetime) -> date:
    """YYYY-MM-DD (a full ISO timestamp is also accepted); anything else falls back to today."""
    if value:
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    return now.date()
