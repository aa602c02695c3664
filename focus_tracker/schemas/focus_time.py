import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from focus_tracker.schemas.base import CamelModel, assume_utc


class FocusTimeCreate(CamelModel):
    time_from: datetime
    time_to: datetime


class DateQuery(BaseModel):
    date: datetime


class FocusTimeResponse(CamelModel):
    id: uuid.UUID
    user_id: str
    time_from: datetime
    time_to: datetime
    created_at: datetime
    updated_at: datetime

    @field_validator("time_from", "time_to", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        return assume_utc(value)


class FocusTimeDayCount(BaseModel):
    key: list[int] = Field(alias="_id")  # [year, month, day]
    count: int

    model_config = ConfigDict(populate_by_name=True)
