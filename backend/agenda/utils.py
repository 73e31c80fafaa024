from __future__ import annotations

import datetime as dt
from typing import List, Optional
from zoneinfo import ZoneInfo

from .config import settings

# Hourly slots from 08:00 to 22:00
TIME_SLOTS: List[str] = [f"{hour:02d}:00" for hour in range(8, 23)]


def local_now() -> dt.datetime:
    """Return the current time in the configured office timezone."""
    return dt.datetime.now(ZoneInfo(settings.timezone))


def slot_hour(time_slot: str) -> int:
    return int(time_slot.split(":", 1)[0])


def available_time_slots(day: dt.date, now: Optional[dt.datetime] = None) -> List[str]:
    """Slots that can still be booked on ``day``; only later hours remain for today."""
    current = now or local_now()
    if day != current.date():
        return list(TIME_SLOTS)
    return [slot for slot in TIME_SLOTS if slot_hour(slot) > current.hour]
