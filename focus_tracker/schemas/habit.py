import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from focus_tracker.schemas.base import CamelModel, assume_utc


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class ToggleQuery(BaseModel):
    date: datetime | None = None


class HabitResponse(CamelModel):
    id: uuid.UUID
    user_id: str
    name: str
    completed_dates: list[date]
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        return assume_utc(value)


class HabitMetricsResponse(CamelModel):
    id: uuid.UUID
    name: str
    completed_dates_per_month: int
