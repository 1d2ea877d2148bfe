from datetime import date

from pydantic import BaseModel, Field


class WorkingHourRule(BaseModel):
    day_of_week: int = Field(ge=0, le=8)
    hour: int = Field(ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)

    class Config:
        from_attributes = True


class BookedSlot(BaseModel):
    date: date
    time: str


class TimeSlot(BaseModel):
    working_hour_id: str
    time: str
    hour: int
    minute: int
    display_time: str


class AvailableDay(BaseModel):
    date: date
    day_of_week: int
    day_name: str
    display_date: str
    slots: list[TimeSlot]
    total_slots: int


class SearchPeriod(BaseModel):
    from_date: date
    to_date: date
    number_of_days: int


class AvailabilityReport(BaseModel):
    doctor_id: str
    doctor_name: str | None = None
    search_period: SearchPeriod | None = None
    available_slots: list[AvailableDay] = []
    total_available_days: int = 0
    total_available_slots: int = 0
    message: str | None = None


class MergeWorkingHoursRequest(BaseModel):
    working_hours: list[WorkingHourRule]


class WorkingHoursResponse(BaseModel):
    doctor_id: str
    working_hours: list[WorkingHourRule]
    added: int
