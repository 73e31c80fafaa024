"""Moving an activity to another slot.

Rescheduling never edits an activity in place: the original is marked as
superseded (kept for history and rendered struck-through) and a full copy,
including the day-by-day itinerary of business trips, is created at the new
slot. Both records point at each other's slot through the ``rescheduled_*``
columns.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import ActivityLockedError, RescheduleFailedError
from .models import MEETING_FIELDS, TRIP_FIELDS, Activity, ActivityItem, DailyActivity
from .services import ensure_slot_free, load_activity_with_children

logger = logging.getLogger(__name__)

HOTEL_FIELDS = ("need_hotel", "hotel_check_in", "hotel_check_out", "hotel_name", "hotel_address")


@dataclass
class RescheduleResult:
    updated_original: Activity
    new_activity: Activity


def build_replica_fields(
    original: Activity,
    new_date: dt.date,
    new_time: str,
    acting_user_id: int,
) -> Dict[str, Any]:
    """Column values for the copy of ``original`` placed at ``new_date``/``new_time``."""
    variant_fields = TRIP_FIELDS if original.is_business_trip else MEETING_FIELDS
    fields: Dict[str, Any] = {
        "date": new_date,
        "time": new_time,
        "activity_type": original.activity_type,
        "employee_id": original.employee_id,
        "branch_id": original.branch_id,
        "created_by": acting_user_id,
        "superseded": False,
        "rescheduled_from_date": original.date,
        "rescheduled_from_time": original.time,
    }
    for field in variant_fields:
        fields[field] = getattr(original, field)
    return fields


def clone_daily_structure(
    db: Session,
    source_days: Iterable[DailyActivity],
    target_activity_id: int,
) -> List[DailyActivity]:
    """Copy trip days and their items onto ``target_activity_id``.

    Must run inside the caller's unit of work; nothing is committed here.
    """
    cloned: List[DailyActivity] = []
    for source_day in source_days:
        day = DailyActivity(activity_id=target_activity_id)
        for field in HOTEL_FIELDS:
            setattr(day, field, getattr(source_day, field))
        day.date = source_day.date
        db.add(day)
        db.flush()
        items = sorted(source_day.activity_items, key=lambda item: item.order)
        db.add_all(
            ActivityItem(daily_activity_id=day.id, name=item.name, order=position)
            for position, item in enumerate(items)
        )
        cloned.append(day)
    db.flush()
    return cloned


def reschedule_activity(
    db: Session,
    activity_id: int,
    requester_id: int,
    new_date: dt.date,
    new_time: str,
) -> RescheduleResult:
    original = load_activity_with_children(db, activity_id, requester_id)
    if original.superseded:
        raise ActivityLockedError()
    # Checked before the write; a concurrent request can still claim the slot.
    ensure_slot_free(db, original.employee_id, new_date, new_time)

    source_days = list(original.daily_activities) if original.is_business_trip else []
    replica_fields = build_replica_fields(original, new_date, new_time, requester_id)
    try:
        original.superseded = True
        original.rescheduled_to_date = new_date
        original.rescheduled_to_time = new_time
        replica = Activity(**replica_fields)
        db.add(replica)
        db.flush()
        replica_id = replica.id
        if source_days:
            clone_daily_structure(db, source_days, replica_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Rescheduling activity %s failed, changes rolled back", activity_id)
        raise RescheduleFailedError() from exc

    logger.info(
        "Activity %s rescheduled to %s %s as activity %s",
        activity_id,
        new_date.isoformat(),
        new_time,
        replica_id,
    )
    db.expire_all()
    return RescheduleResult(
        updated_original=load_activity_with_children(db, activity_id, requester_id),
        new_activity=load_activity_with_children(db, replica_id, requester_id),
    )
