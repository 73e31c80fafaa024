from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional, Union

from typing_extensions import Annotated, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, RootModel, field_validator, model_serializer, model_validator

from .models import BUSINESS_TRIP, MEETING_FIELDS, TRIP_FIELDS, ActivityType, TransportationType
from .utils import TIME_SLOTS, available_time_slots, local_now


def _serialize_datetime(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    else:
        value = value.astimezone(dt.timezone.utc)
    return value.isoformat()


def _serialize_date(value: Optional[dt.date]) -> Optional[str]:
    return value.isoformat() if value else None


def _validate_time_slot(value: str) -> str:
    value = value.strip()
    if value not in TIME_SLOTS:
        raise ValueError("Waktu harus berupa slot antara 08:00 dan 22:00")
    return value


def _require_text(value: str, message: str) -> str:
    if not value or not value.strip():
        raise ValueError(message)
    return value.strip()


# --- reference entities -----------------------------------------------------


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    email: str
    name: Optional[str] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    email: Optional[str] = None
    position: Optional[str] = None


class BranchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    created_at: dt.datetime
    updated_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": _serialize_datetime(self.created_at),
            "updated_at": _serialize_datetime(self.updated_at),
        }


class EmployeeSearchResponse(BaseModel):
    employees: List[EmployeeResponse]
    total: int
    page: int
    limit: int
    has_more: bool
    next_page: Optional[int]


class BranchSearchResponse(BaseModel):
    branches: List[BranchResponse]
    total: int
    page: int
    limit: int
    has_more: bool
    next_page: Optional[int]


# --- authentication ---------------------------------------------------------


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


# --- activity payloads ------------------------------------------------------


class ActivityItemPayload(BaseModel):
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return _require_text(value, "Nama kegiatan harus diisi")


class DailyActivityPayload(BaseModel):
    date: dt.date
    need_hotel: bool = False
    hotel_check_in: Optional[dt.date] = None
    hotel_check_out: Optional[dt.date] = None
    hotel_name: Optional[str] = None
    hotel_address: Optional[str] = None
    activity_items: List[ActivityItemPayload] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_hotel(self) -> "DailyActivityPayload":
        if self.need_hotel and not (self.hotel_check_in and self.hotel_check_out):
            raise ValueError("Tanggal check-in dan check-out hotel harus diisi jika membutuhkan hotel")
        if self.hotel_check_in and self.hotel_check_out and self.hotel_check_out <= self.hotel_check_in:
            raise ValueError("Tanggal check-out harus setelah tanggal check-in")
        return self


class ActivityPayloadBase(BaseModel):
    date: dt.date
    time: str
    branch_id: int
    employee_id: int

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return _validate_time_slot(value)


class MeetingPayload(ActivityPayloadBase):
    activity_type: Literal["PROSPECT_MEETING", "ESCORT_TEAM", "TAMU_UNDANGAN", "RETENTION_TEAM"]
    title: str = Field(max_length=100)
    description: str = Field(max_length=500)

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        return _require_text(value, "Judul kegiatan harus diisi")

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str) -> str:
        return _require_text(value, "Deskripsi kegiatan harus diisi")

    def variant_fields(self) -> dict[str, Any]:
        return {field: getattr(self, field) for field in MEETING_FIELDS}


class BusinessTripPayload(ActivityPayloadBase):
    activity_type: Literal["PERJALANAN_DINAS"]
    birth_date: dt.date
    id_card: str = Field(min_length=1, max_length=100)
    departure_date: dt.date
    transportation_type: TransportationType
    transportation_name: str = Field(min_length=1, max_length=200)
    booking_flight_no: Optional[str] = Field(default=None, max_length=100)
    transportation_from: str = Field(min_length=1, max_length=200)
    destination: str = Field(min_length=1, max_length=200)
    departure_from: str = Field(min_length=1, max_length=200)
    arrival_to: str = Field(min_length=1, max_length=200)
    daily_activities: List[DailyActivityPayload] = Field(min_length=1)

    def variant_fields(self) -> dict[str, Any]:
        return {field: getattr(self, field) for field in TRIP_FIELDS}


ActivityPayload = Annotated[Union[MeetingPayload, BusinessTripPayload], Field(discriminator="activity_type")]


class ActivityRequest(RootModel[ActivityPayload]):
    """Create/update body, discriminated on ``activity_type``."""


class RescheduleRequest(BaseModel):
    date: dt.date
    time: str

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return _validate_time_slot(value)

    @model_validator(mode="after")
    def _not_in_past(self) -> "RescheduleRequest":
        now = local_now()
        if self.date < now.date():
            raise ValueError("Tanggal tidak boleh di masa lalu")
        if self.time not in available_time_slots(self.date, now):
            raise ValueError("Waktu tidak boleh di masa lalu untuk hari ini")
        return self


# --- activity responses -----------------------------------------------------


class ActivityItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    order: int


class DailyActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    activity_id: int
    date: dt.date
    need_hotel: bool
    hotel_check_in: Optional[dt.date] = None
    hotel_check_out: Optional[dt.date] = None
    hotel_name: Optional[str] = None
    hotel_address: Optional[str] = None
    activity_items: List[ActivityItemResponse] = Field(default_factory=list)


class ActivityResponse(BaseModel):
    """Activity as shown to clients; only the field group of its type is emitted."""

    model_config = ConfigDict(from_attributes=True)
    id: int
    date: dt.date
    time: str
    activity_type: ActivityType
    employee_id: int
    branch_id: int
    created_by: int
    employee: EmployeeResponse
    branch: BranchResponse
    creator: UserResponse

    title: Optional[str] = None
    description: Optional[str] = None

    birth_date: Optional[dt.date] = None
    id_card: Optional[str] = None
    departure_date: Optional[dt.date] = None
    transportation_type: Optional[TransportationType] = None
    transportation_name: Optional[str] = None
    booking_flight_no: Optional[str] = None
    transportation_from: Optional[str] = None
    destination: Optional[str] = None
    departure_from: Optional[str] = None
    arrival_to: Optional[str] = None
    daily_activities: List[DailyActivityResponse] = Field(default_factory=list)

    superseded: bool
    rescheduled_to_date: Optional[dt.date] = None
    rescheduled_to_time: Optional[str] = None
    rescheduled_from_date: Optional[dt.date] = None
    rescheduled_from_time: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    @model_serializer(mode="plain", when_used="json")
    def _serialize(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "date": self.date.isoformat(),
            "time": self.time,
            "activity_type": self.activity_type.value,
            "employee_id": self.employee_id,
            "branch_id": self.branch_id,
            "created_by": self.created_by,
            "employee": self.employee.model_dump(mode="json"),
            "branch": self.branch._serialize(),
            "creator": self.creator.model_dump(mode="json"),
            "superseded": self.superseded,
            "rescheduled_to_date": _serialize_date(self.rescheduled_to_date),
            "rescheduled_to_time": self.rescheduled_to_time,
            "rescheduled_from_date": _serialize_date(self.rescheduled_from_date),
            "rescheduled_from_time": self.rescheduled_from_time,
            "created_at": _serialize_datetime(self.created_at),
            "updated_at": _serialize_datetime(self.updated_at),
        }
        if self.activity_type == BUSINESS_TRIP:
            data.update(
                {
                    "birth_date": _serialize_date(self.birth_date),
                    "id_card": self.id_card,
                    "departure_date": _serialize_date(self.departure_date),
                    "transportation_type": self.transportation_type.value if self.transportation_type else None,
                    "transportation_name": self.transportation_name,
                    "booking_flight_no": self.booking_flight_no,
                    "transportation_from": self.transportation_from,
                    "destination": self.destination,
                    "departure_from": self.departure_from,
                    "arrival_to": self.arrival_to,
                    "daily_activities": [day.model_dump(mode="json") for day in self.daily_activities],
                }
            )
        else:
            data.update({"title": self.title, "description": self.description})
        return data


class RescheduleResponse(BaseModel):
    updated_original: ActivityResponse
    new_activity: ActivityResponse


class DeleteResponse(BaseModel):
    success: bool = True
