"""RunKeeper (Health Graph) endpoints exposed as OMH payloads.

Each endpoint is a :class:`RunKeeperApi` that knows its path, how to build the
outbound query, how to parse the response into records and how to render those
records as OMH data points. An instance fetches at most once.
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from ..errors import RunKeeperProtocolError, RunKeeperTransportError
from .columns import ColumnNode, selects
from .runkeeper_schemas import (
    FitnessActivityFeed,
    FitnessActivityItem,
    RunKeeperProfile,
    format_runkeeper_datetime,
)

DOMAIN_ID = "run_keeper"
OMH_NAMESPACE = "omh"
PAYLOAD_VERSION = "1"
DEFAULT_API_BASE = "https://api.runkeeper.com"
REQUEST_DATE_FORMAT = "%Y-%m-%d"
MAX_NUMBER_TO_RETURN = 2000

ModelT = TypeVar("ModelT", bound=BaseModel)


def api_base() -> str:
    return os.getenv("RUNKEEPER_API_BASE", DEFAULT_API_BASE).rstrip("/")


def last_path_segment(value: str) -> str:
    return value.rstrip("/").rsplit("/", 1)[-1]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class FetchState(str, Enum):
    unfetched = "unfetched"
    fetched = "fetched"


@dataclass(frozen=True)
class ReadWindow:
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    num_to_skip: int = 0
    num_to_return: int = MAX_NUMBER_TO_RETURN

    def contains(self, moment: datetime) -> bool:
        if self.start_date is not None and moment < self.start_date:
            return False
        if self.end_date is not None and moment > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class Page:
    page: int
    page_size: int
    local_skip: int


def paginate(num_to_skip: int, num_to_return: int) -> Page:
    """Translate a skip/limit pair into RunKeeper's page/pageSize scheme.

    The page may hold up to ``local_skip`` records outside the requested window;
    :meth:`FitnessActivitiesApi.parse_response` drops them once the response
    arrives.
    """
    if num_to_return == 0:
        return Page(page=0, page_size=num_to_skip, local_skip=0)
    local_skip = num_to_skip % num_to_return
    return Page(
        page=num_to_skip // num_to_return,
        page_size=num_to_return + local_skip,
        local_skip=local_skip,
    )


@dataclass
class ProfileRecord:
    birthday: Optional[datetime] = None
    location: Optional[str] = None
    name: Optional[str] = None
    elite: Optional[str] = None
    gender: Optional[str] = None
    athlete_type: Optional[str] = None
    profile: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class ActivityRecord:
    id: Optional[str]
    type: Optional[str]
    start_time: datetime
    timestamp: datetime
    total_distance: float
    duration: float
    uri: Optional[str]


def map_profile(profile: RunKeeperProfile) -> ProfileRecord:
    return ProfileRecord(
        birthday=profile.birthday,
        location=profile.location,
        name=profile.name,
        elite=profile.elite,
        gender=profile.gender,
        athlete_type=profile.athlete_type,
        profile=profile.profile,
        user_id=last_path_segment(profile.profile) if profile.profile is not None else None,
    )


def map_fitness_activity(item: FitnessActivityItem) -> ActivityRecord:
    if item.utc_offset is None:
        zone = timezone.utc
    else:
        zone = timezone(timedelta(hours=item.utc_offset))
    return ActivityRecord(
        id=last_path_segment(item.uri) if item.uri is not None else None,
        type=item.type,
        start_time=item.start_time,
        timestamp=item.start_time.replace(tzinfo=zone),
        total_distance=item.total_distance,
        duration=item.duration,
        uri=item.uri,
    )


def _concordia(fields: tuple[tuple[str, str], ...]) -> dict:
    return {
        "type": "object",
        "schema": [{"name": name, "type": kind} for name, kind in fields],
    }


class RunKeeperApi(ABC):
    path: str = ""
    media_type: str = "application/json"
    # Which metadata keys a rendered point carries.
    has_id: bool = False
    has_timestamp: bool = False
    has_location: bool = False
    fields: tuple[tuple[str, str], ...] = ()

    def __init__(self):
        if not self.path or not self.path.strip():
            raise ValueError("The RunKeeper API path is empty.")
        self.state = FetchState.unfetched

    @property
    def uri(self) -> str:
        return f"{api_base()}/{self.path}"

    @property
    def payload_id(self) -> str:
        return f"{OMH_NAMESPACE}:{DOMAIN_ID}:{self.path}"

    def to_concordia(self) -> dict:
        return _concordia(self.fields)

    def registry_entry(self) -> dict:
        return {
            "chunk_size": MAX_NUMBER_TO_RETURN,
            "local_tz_authoritative": True,
            "summarizable": False,
            "payload_id": self.payload_id,
            "payload_version": PAYLOAD_VERSION,
            "payload_definition": self.to_concordia(),
        }

    def service(
        self,
        bearer: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        num_to_skip: int = 0,
        num_to_return: int = MAX_NUMBER_TO_RETURN,
        *,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if self.state is FetchState.fetched:
            logger.debug(f"RunKeeper {self.path} already fetched; skipping request")
            return

        window = ReadWindow(
            start_date=as_utc(start_date),
            end_date=as_utc(end_date),
            num_to_skip=num_to_skip,
            num_to_return=num_to_return,
        )
        params = self.build_request(window)
        body = self.fetch(bearer, params, client=client)
        self.parse_response(body, window)
        self.state = FetchState.fetched

    def fetch(
        self,
        bearer: str,
        params: dict[str, str],
        *,
        client: Optional[httpx.Client] = None,
    ) -> bytes:
        if client is None:
            with httpx.Client() as owned_client:
                return self.fetch(bearer, params, client=owned_client)

        logger.debug(f"GET {self.uri} params={params}")
        try:
            response = client.get(
                self.uri,
                params=params,
                headers={
                    "Authorization": f"Bearer {bearer}",
                    "Accept": self.media_type,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RunKeeperProtocolError(
                f"RunKeeper returned HTTP {exc.response.status_code} for {self.path}."
            ) from exc
        except httpx.HTTPError as exc:
            raise RunKeeperTransportError(
                f"There was an error communicating with RunKeeper: {exc}"
            ) from exc
        return response.content

    def decode(self, model: type[ModelT], body: bytes | str) -> ModelT:
        try:
            return model.model_validate_json(body)
        except ValidationError as exc:
            raise RunKeeperProtocolError(
                f"The RunKeeper {self.path} response could not be parsed: "
                f"{exc.errors(include_url=False)[0]['msg']}"
            ) from exc

    def build_request(self, window: ReadWindow) -> dict[str, str]:
        return {}

    def metadata(
        self,
        record_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        location: Optional[dict] = None,
    ) -> dict:
        metadata: dict = {}
        if self.has_id:
            metadata["id"] = record_id
        if self.has_timestamp and timestamp is not None:
            metadata["timestamp"] = timestamp.isoformat(timespec="milliseconds")
        if self.has_location and location is not None:
            metadata["location"] = location
        return metadata

    @abstractmethod
    def parse_response(self, body: bytes | str, window: ReadWindow) -> None:
        """Parse the vendor response and store the records it describes."""

    @abstractmethod
    def get_num_data_points(self) -> int:
        """Return the number of points :meth:`respond` will produce."""

    @abstractmethod
    def respond(self, columns: Optional[ColumnNode] = None) -> list[dict]:
        """Render the stored records as OMH data points."""


class ProfileApi(RunKeeperApi):
    path = "profile"
    media_type = "application/vnd.com.runkeeper.Profile+json"
    has_id = True
    # RunKeeper sends "elite" as a quoted boolean, so everything stays a string.
    fields = (
        ("birthday", "string"),
        ("location", "string"),
        ("name", "string"),
        ("elite", "string"),
        ("gender", "string"),
        ("athlete_type", "string"),
        ("profile", "string"),
    )

    def __init__(self):
        super().__init__()
        self.record = ProfileRecord()

    def parse_response(self, body: bytes | str, window: ReadWindow) -> None:
        self.record = map_profile(self.decode(RunKeeperProfile, body))
        logger.debug(f"Parsed RunKeeper profile for user_id={self.record.user_id}")

    def get_num_data_points(self) -> int:
        return 1

    def respond(self, columns: Optional[ColumnNode] = None) -> list[dict]:
        record = self.record
        values = {
            "birthday": format_runkeeper_datetime(record.birthday),
            "location": record.location,
            "name": record.name,
            "elite": record.elite,
            "gender": record.gender,
            "athlete_type": record.athlete_type,
            "profile": record.profile,
        }
        data = {name: values[name] for name, _ in self.fields if selects(columns, name)}
        return [{"metadata": self.metadata(record.user_id), "data": data}]


class FitnessActivitiesApi(RunKeeperApi):
    path = "fitnessActivities"
    media_type = "application/vnd.com.runkeeper.FitnessActivityFeed+json"
    has_id = True
    has_timestamp = True
    fields = (
        ("duration", "number"),
        ("start_time", "string"),
        ("total_distance", "number"),
        ("type", "string"),
        ("uri", "string"),
    )

    def __init__(self):
        super().__init__()
        self.records: list[ActivityRecord] = []
        self.page = Page(page=0, page_size=0, local_skip=0)

    def build_request(self, window: ReadWindow) -> dict[str, str]:
        params: dict[str, str] = {}
        if window.start_date is not None:
            params["noEarlierThan"] = window.start_date.strftime(REQUEST_DATE_FORMAT)
        if window.end_date is not None:
            params["noLaterThan"] = window.end_date.strftime(REQUEST_DATE_FORMAT)

        self.page = paginate(window.num_to_skip, window.num_to_return)
        params["page"] = str(self.page.page)
        params["pageSize"] = str(self.page.page_size)
        return params

    def parse_response(self, body: bytes | str, window: ReadWindow) -> None:
        items = self.decode(FitnessActivityFeed, body).items

        if window.num_to_return > 0:
            # The page starts at page * page_size. Records before num_to_skip are
            # dropped from its head; if the page starts past num_to_skip they were
            # never fetched.
            offset = self.page.page * self.page.page_size
            head = max(0, window.num_to_skip - offset)
            items = items[head:head + window.num_to_return]

        for item in items:
            record = map_fitness_activity(item)
            if window.contains(record.timestamp):
                self.records.append(record)
        logger.debug(
            f"Parsed {len(items)} RunKeeper activities; kept {len(self.records)} in window"
        )

    def get_num_data_points(self) -> int:
        return len(self.records)

    def respond(self, columns: Optional[ColumnNode] = None) -> list[dict]:
        points = []
        for record in self.records:
            values = {
                "duration": record.duration,
                "start_time": format_runkeeper_datetime(record.start_time),
                "total_distance": record.total_distance,
                "type": record.type,
                "uri": record.uri,
            }
            points.append(
                {
                    "metadata": self.metadata(record.id, record.timestamp),
                    "data": {
                        name: values[name]
                        for name, _ in self.fields
                        if selects(columns, name)
                    },
                }
            )
        return points


API_FACTORY: dict[str, type[RunKeeperApi]] = {
    ProfileApi.path: ProfileApi,
    FitnessActivitiesApi.path: FitnessActivitiesApi,
}


def get_api(name: str) -> RunKeeperApi:
    api_class = API_FACTORY.get(name)
    if api_class is None:
        raise ValueError(f"The RunKeeper path is unknown: {name}")
    return api_class()
