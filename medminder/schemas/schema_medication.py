from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel
import datetime as dt
from datetime import date, datetime, timezone
from typing import List, Optional
from enum import Enum

from medminder.models.taken_log import LogStatus
from medminder.services.slots import normalize_slots, parse_slot


class SlotStatus(str, Enum):
    TAKEN = "TAKEN"
    MISSED = "MISSED"
    PENDING = "PENDING"


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case accepted too
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CreateMedication(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    dosage: str = Field(min_length=1, max_length=60)
    frequency: str = Field(min_length=1, max_length=60)
    times: List[str] = Field(min_length=1)
    email: str = Field(min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("times")
    @classmethod
    def times_are_slots(cls, v):
        return normalize_slots(v)

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class MarkDose(CamelModel):
    time: str
    status: LogStatus
    email: str = Field(min_length=1)

    @field_validator("time")
    @classmethod
    def time_is_slot(cls, v):
        parse_slot(v)
        return v


def as_utc_iso(v: datetime) -> str:
    """Stored datetimes are naive UTC; mark them as such on the wire."""
    if v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class TakenLogItem(CamelModel):
    id: int
    medication_id: str
    status: LogStatus
    timestamp: datetime

    @field_serializer("timestamp")
    def serialize_timestamp(self, v: datetime, _info):
        return as_utc_iso(v)


class MedicationItem(CamelModel):
    id: str
    patient_id: str
    name: str
    dosage: str
    frequency: str
    times: List[str]
    start_date: datetime
    end_date: Optional[datetime] = None
    taken_log: List[TakenLogItem] = []

    @field_serializer("start_date", "end_date")
    def serialize_dates(self, v: Optional[datetime], _info):
        if v is None:
            return None
        return as_utc_iso(v)


class SlotItem(CamelModel):
    time: str
    status: SlotStatus


class ScheduledMedication(CamelModel):
    medication_id: str
    name: str
    dosage: str
    times: List[SlotItem]


class ResponseSchedule(CamelModel):
    medications: List[ScheduledMedication]
    is_today: bool


class DailyActivity(CamelModel):
    date: dt.date
    status: SlotStatus
    total_medications: int
    taken_count: int
    missed_count: int
