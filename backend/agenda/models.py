from __future__ import annotations

import datetime as dt
import enum

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ActivityType(str, enum.Enum):
    PROSPECT_MEETING = "PROSPECT_MEETING"
    ESCORT_TEAM = "ESCORT_TEAM"
    PERJALANAN_DINAS = "PERJALANAN_DINAS"
    TAMU_UNDANGAN = "TAMU_UNDANGAN"
    RETENTION_TEAM = "RETENTION_TEAM"


class TransportationType(str, enum.Enum):
    FLIGHT = "FLIGHT"
    FERRY = "FERRY"
    TRAIN = "TRAIN"


BUSINESS_TRIP = ActivityType.PERJALANAN_DINAS

MEETING_FIELDS = ("title", "description")

TRIP_FIELDS = (
    "birth_date",
    "id_card",
    "departure_date",
    "transportation_type",
    "transportation_name",
    "booking_flight_no",
    "transportation_from",
    "destination",
    "departure_from",
    "arrival_to",
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=True)
    password_hash = Column(String(255), nullable=False)
    image = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    position = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)
    activity_type = Column(Enum(ActivityType, native_enum=False, length=32), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    birth_date = Column(Date, nullable=True)
    id_card = Column(String(100), nullable=True)
    departure_date = Column(Date, nullable=True)
    transportation_type = Column(Enum(TransportationType, native_enum=False, length=16), nullable=True)
    transportation_name = Column(String(200), nullable=True)
    booking_flight_no = Column(String(100), nullable=True)
    transportation_from = Column(String(200), nullable=True)
    destination = Column(String(200), nullable=True)
    departure_from = Column(String(200), nullable=True)
    arrival_to = Column(String(200), nullable=True)

    superseded = Column(Boolean, nullable=False, default=False, index=True)
    rescheduled_to_date = Column(Date, nullable=True)
    rescheduled_to_time = Column(String(5), nullable=True)
    rescheduled_from_date = Column(Date, nullable=True)
    rescheduled_from_time = Column(String(5), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    employee = relationship("Employee")
    branch = relationship("Branch")
    creator = relationship("User")
    daily_activities = relationship(
        "DailyActivity",
        back_populates="activity",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [DailyActivity.date, DailyActivity.id],
    )

    @property
    def is_business_trip(self) -> bool:
        return self.activity_type == BUSINESS_TRIP


class DailyActivity(Base):
    __tablename__ = "daily_activities"

    id = Column(Integer, primary_key=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    need_hotel = Column(Boolean, nullable=False, default=False)
    hotel_check_in = Column(Date, nullable=True)
    hotel_check_out = Column(Date, nullable=True)
    hotel_name = Column(String(200), nullable=True)
    hotel_address = Column(Text, nullable=True)

    activity = relationship("Activity", back_populates="daily_activities")
    activity_items = relationship(
        "ActivityItem",
        back_populates="daily_activity",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ActivityItem.order",
    )


class ActivityItem(Base):
    __tablename__ = "activity_items"

    id = Column(Integer, primary_key=True)
    daily_activity_id = Column(
        Integer, ForeignKey("daily_activities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    order = Column(Integer, nullable=False, default=0)

    daily_activity = relationship("DailyActivity", back_populates="activity_items")
