from __future__ import annotations

import datetime as dt

from agenda.utils import TIME_SLOTS, available_time_slots


def test_slots_cover_office_hours():
    assert TIME_SLOTS[0] == "08:00"
    assert TIME_SLOTS[-1] == "22:00"
    assert len(TIME_SLOTS) == 15


def test_only_later_hours_remain_today():
    now = dt.datetime(2025, 5, 20, 13, 45)
    assert available_time_slots(now.date(), now)[0] == "14:00"
    assert available_time_slots(now.date() + dt.timedelta(days=1), now) == TIME_SLOTS


def test_nothing_left_late_in_the_evening():
    now = dt.datetime(2025, 5, 20, 22, 5)
    assert available_time_slots(now.date(), now) == []
