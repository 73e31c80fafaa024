from __future__ import annotations

import calendar
import datetime as dt
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from .errors import ActivityConflictError, ActivityLockedError, ActivityNotFoundError, InvalidRequestError
from .models import (
    BUSINESS_TRIP,
    MEETING_FIELDS,
    TRIP_FIELDS,
    Activity,
    ActivityItem,
    ActivityType,
    Branch,
    DailyActivity,
    Employee,
)
from .schemas import ActivityPayload, BusinessTripPayload, DailyActivityPayload

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 100


def _activity_query(db: Session):
    return db.query(Activity).options(
        joinedload(Activity.employee),
        joinedload(Activity.branch),
        joinedload(Activity.creator),
        selectinload(Activity.daily_activities).selectinload(DailyActivity.activity_items),
    )


# --- conflict checking ------------------------------------------------------


def has_conflict(
    db: Session,
    employee_id: int,
    date: dt.date,
    time: str,
    exclude_activity_id: Optional[int] = None,
) -> bool:
    """Return whether ``employee_id`` already has an activity at ``date``/``time``.

    Superseded activities still occupy their slot and count as conflicts.
    """
    query = db.query(Activity.id).filter(
        Activity.employee_id == employee_id,
        Activity.date == date,
        Activity.time == time,
    )
    if exclude_activity_id is not None:
        query = query.filter(Activity.id != exclude_activity_id)
    return query.first() is not None


def ensure_slot_free(
    db: Session,
    employee_id: int,
    date: dt.date,
    time: str,
    exclude_activity_id: Optional[int] = None,
) -> None:
    if has_conflict(db, employee_id, date, time, exclude_activity_id):
        logger.info("Slot %s %s already taken for employee %s", date, time, employee_id)
        raise ActivityConflictError()


# --- reading ----------------------------------------------------------------


def load_activity_with_children(db: Session, activity_id: int, requester_id: int) -> Activity:
    """Load an activity owned by ``requester_id`` including its days and items.

    Foreign activities are reported exactly like missing ones.
    """
    activity = (
        _activity_query(db)
        .filter(Activity.id == activity_id, Activity.created_by == requester_id)
        .one_or_none()
    )
    if activity is None:
        raise ActivityNotFoundError()
    return activity


def _month_bounds(year: int, month: int) -> Tuple[dt.date, dt.date]:
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, 1), dt.date(year, month, last_day)


def list_activities(
    db: Session,
    requester_id: int,
    *,
    day: Optional[dt.date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    employee_id: Optional[int] = None,
) -> List[Activity]:
    if day is not None:
        start, end = day, day
    elif month is not None and year is not None:
        if not 1 <= month <= 12:
            raise InvalidRequestError("Invalid month")
        start, end = _month_bounds(year, month)
    elif from_date is not None and to_date is not None:
        if to_date < from_date:
            raise InvalidRequestError("Invalid range")
        start, end = from_date, to_date
    else:
        raise InvalidRequestError("Missing required parameters")

    query = _activity_query(db).filter(
        Activity.created_by == requester_id,
        Activity.date >= start,
        Activity.date <= end,
    )
    if employee_id is not None:
        query = query.filter(Activity.employee_id == employee_id)
    return query.order_by(Activity.date.asc(), Activity.time.asc(), Activity.id.asc()).all()


# --- writing ----------------------------------------------------------------


def _get_reference(db: Session, model, reference_id: int, label: str):
    instance = db.get(model, reference_id)
    if instance is None:
        raise InvalidRequestError(f"{label} tidak ditemukan")
    return instance


def _build_daily_activities(days: Iterable[DailyActivityPayload]) -> List[DailyActivity]:
    built: List[DailyActivity] = []
    for day in days:
        daily = DailyActivity(
            date=day.date,
            need_hotel=day.need_hotel,
            hotel_check_in=day.hotel_check_in if day.need_hotel else None,
            hotel_check_out=day.hotel_check_out if day.need_hotel else None,
            hotel_name=day.hotel_name if day.need_hotel else None,
            hotel_address=day.hotel_address if day.need_hotel else None,
        )
        daily.activity_items = [
            ActivityItem(name=item.name, order=index) for index, item in enumerate(day.activity_items)
        ]
        built.append(daily)
    return sorted(built, key=lambda daily: daily.date)


def _apply_payload(activity: Activity, payload: ActivityPayload) -> None:
    activity.date = payload.date
    activity.time = payload.time
    activity.activity_type = ActivityType(payload.activity_type)
    activity.branch_id = payload.branch_id
    activity.employee_id = payload.employee_id
    cleared = TRIP_FIELDS if activity.activity_type != BUSINESS_TRIP else MEETING_FIELDS
    for field in cleared:
        setattr(activity, field, None)
    for field, value in payload.variant_fields().items():
        setattr(activity, field, value)
    if isinstance(payload, BusinessTripPayload):
        activity.daily_activities = _build_daily_activities(payload.daily_activities)
    else:
        activity.daily_activities = []


def create_activity(db: Session, requester_id: int, payload: ActivityPayload) -> Activity:
    _get_reference(db, Employee, payload.employee_id, "Employee")
    _get_reference(db, Branch, payload.branch_id, "Branch")
    ensure_slot_free(db, payload.employee_id, payload.date, payload.time)

    activity = Activity(created_by=requester_id, superseded=False)
    _apply_payload(activity, payload)
    db.add(activity)
    db.commit()
    logger.info("Activity %s created by user %s", activity.id, requester_id)
    return load_activity_with_children(db, activity.id, requester_id)


def update_activity(db: Session, activity_id: int, requester_id: int, payload: ActivityPayload) -> Activity:
    activity = load_activity_with_children(db, activity_id, requester_id)
    if activity.superseded:
        raise ActivityLockedError()
    _get_reference(db, Employee, payload.employee_id, "Employee")
    _get_reference(db, Branch, payload.branch_id, "Branch")
    ensure_slot_free(db, payload.employee_id, payload.date, payload.time, exclude_activity_id=activity.id)

    _apply_payload(activity, payload)
    db.add(activity)
    db.commit()
    db.expire_all()
    return load_activity_with_children(db, activity_id, requester_id)


def delete_activity(db: Session, activity_id: int, requester_id: int) -> None:
    activity = load_activity_with_children(db, activity_id, requester_id)
    db.delete(activity)
    db.commit()
    logger.info("Activity %s deleted by user %s", activity_id, requester_id)


# --- reference lookups ------------------------------------------------------


def _paginate(query, order_column, page: int, limit: int) -> Tuple[List[Any], Dict[str, Any]]:
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_SEARCH_LIMIT)
    skip = (page - 1) * limit
    total = query.count()
    rows = query.order_by(order_column.asc()).offset(skip).limit(limit).all()
    has_more = skip + limit < total
    meta = {
        "total": total,
        "page": page,
        "limit": limit,
        "has_more": has_more,
        "next_page": page + 1 if has_more else None,
    }
    return rows, meta


def _contains(column, term: str):
    return func.lower(column).contains(term.lower(), autoescape=True)


def search_employees(db: Session, search: str = "", page: int = 1, limit: int = 20) -> Dict[str, Any]:
    query = db.query(Employee)
    term = search.strip()
    if term:
        query = query.filter(
            or_(
                _contains(Employee.name, term),
                _contains(Employee.email, term),
                _contains(Employee.position, term),
            )
        )
    employees, meta = _paginate(query, Employee.name, page, limit)
    return {"employees": employees, **meta}


def search_branches(db: Session, search: str = "", page: int = 1, limit: int = 20) -> Dict[str, Any]:
    query = db.query(Branch)
    term = search.strip()
    if term:
        query = query.filter(_contains(Branch.name, term))
    branches, meta = _paginate(query, Branch.name, page, limit)
    return {"branches": branches, **meta}
