"""Typed views of the JSON documents the Health Graph API returns.

Unknown keys are ignored so new vendor fields never break a read.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# e.g. "Sat, 1 Jan 2011 00:00:00"
RESPONSE_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S"


def parse_runkeeper_datetime(value: str) -> datetime:
    return datetime.strptime(value.strip(), RESPONSE_DATE_FORMAT)


def format_runkeeper_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # RunKeeper does not zero-pad the day of the month.
    return f"{value:%a}, {value.day} {value:%b %Y %H:%M:%S}"


def _runkeeper_datetime(value: Any) -> Any:
    if isinstance(value, str):
        return parse_runkeeper_datetime(value)
    return value


class RunKeeperProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    location: Optional[str] = None
    athlete_type: Optional[str] = None
    gender: Optional[str] = None
    birthday: Optional[datetime] = None
    elite: Optional[str] = None
    profile: Optional[str] = None

    @field_validator(
        "name", "location", "athlete_type", "gender", "elite", "profile", mode="before"
    )
    @classmethod
    def scalar_as_text(cls, value: Any) -> Any:
        # The profile is documented as all strings, but "elite" arrives as a bare boolean.
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("birthday", mode="before")
    @classmethod
    def parse_birthday(cls, value: Any) -> Any:
        return _runkeeper_datetime(value)


class FitnessActivityItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    start_time: datetime
    utc_offset: Optional[float] = Field(default=None, gt=-24, lt=24)
    total_distance: float = 0.0
    duration: float = 0.0
    uri: Optional[str] = None

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_start_time(cls, value: Any) -> Any:
        return _runkeeper_datetime(value)


class FitnessActivityFeed(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[FitnessActivityItem] = Field(default_factory=list)
