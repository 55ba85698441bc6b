from __future__ import annotations

import calendar
import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def months_before(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping the day to the target month's length."""
    total = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class Role(str, Enum):
    student = "student"
    organiser = "organiser"


class User(BaseModel):
    id: str = Field(default_factory=_new_id)
    email: str
    name: str
    role: Role = Role.student
    interests: list[str] = Field(default_factory=list)
    password_hash: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Event(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    description: str | None = None
    location: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    organiser_id: str | None = None
    organiser_name: str | None = None
    interests: list[str] = Field(default_factory=list)
    capacity: int | None = Field(default=None, ge=0)
    signup_count: int = Field(default=0, ge=0)
    signups_open: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        """Dates sent without an offset are read as UTC."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Signup(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    event_id: str
    attended: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class Review(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    event_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)
    created_at: datetime = Field(default_factory=utcnow)


class SearchHistoryEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    query: str
    timestamp: datetime = Field(default_factory=utcnow)


class ViewHistoryEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    event_id: str
    event_title: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
