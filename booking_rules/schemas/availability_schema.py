"""Availability configuration models consumed by the availability resolver."""

from datetime import date, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class AvailabilityKind(str, Enum):
    ALWAYS = "always"
    WEEKLY_SCHEDULE = "schedule"
    DATE_RANGE = "dates"
    CUSTOM = "custom"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        return list(cls)[value.weekday()]


class DaySchedule(BaseModel):
    """Opening hours for a single weekday, as a half-open ``[start, end)`` window."""

    start: time
    end: time

    @model_validator(mode="after")
    def _check_order(self) -> "DaySchedule":
        if self.start >= self.end:
            raise ValueError("Invalid time range: start must be before end")
        return self

    def contains(self, value: time) -> bool:
        return self.start <= value < self.end


class DateRange(BaseModel):
    """Inclusive calendar date range."""

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start >= self.end:
            raise ValueError("End date must be after start date")
        return self

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


class BookingNotice(BaseModel):
    """Minimum notice and maximum advance window for instant booking."""

    min_notice_hours: int = Field(default=0, ge=0)
    max_advance_days: int = Field(default=30, ge=1)

    @model_validator(mode="after")
    def _check_window(self) -> "BookingNotice":
        if self.max_advance_days * 24 < self.min_notice_hours:
            raise ValueError("Maximum advance booking must be greater than minimum notice")
        return self


class AvailabilityConfig(BaseModel):
    """How a resource offers its time: always, weekly hours, a date range, or by arrangement."""

    kind: AvailabilityKind
    schedule: dict[Weekday, Optional[DaySchedule]] = Field(default_factory=dict)
    date_range: Optional[DateRange] = None
    notice: Optional[BookingNotice] = None

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "AvailabilityConfig":
        if self.kind == AvailabilityKind.WEEKLY_SCHEDULE:
            if not any(day is not None for day in self.schedule.values()):
                raise ValueError("Please set availability for at least one day")
        if self.kind == AvailabilityKind.DATE_RANGE and self.date_range is None:
            raise ValueError("Please select both start and end dates")
        return self

    def day_schedule(self, weekday: Weekday) -> Optional[DaySchedule]:
        return self.schedule.get(weekday)
