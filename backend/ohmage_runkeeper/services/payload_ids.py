from __future__ import annotations

from typing import Optional, Sequence

from loguru import logger

from ..errors import PayloadIdValidationError, UnsupportedOperationError
from .omh_read import OmhReadRunKeeperRequest
from .runkeeper import (
    API_FACTORY,
    DOMAIN_ID,
    OMH_NAMESPACE,
    PAYLOAD_VERSION,
    RunKeeperApi,
    get_api,
)


class RunKeeperPayloadId:
    """A parsed ``omh:run_keeper:<path>`` payload ID."""

    def __init__(self, payload_id_parts: Sequence[str]):
        if len(payload_id_parts) != 3:
            raise PayloadIdValidationError(
                "The RunKeeper payload ID must be exactly three parts."
            )
        try:
            self.api: RunKeeperApi = get_api(payload_id_parts[2])
        except ValueError as exc:
            raise PayloadIdValidationError(
                "The path for the RunKeeper payload ID is unknown."
            ) from exc

    @property
    def api_name(self) -> str:
        return self.api.path

    def to_concordia(self) -> dict:
        return self.api.to_concordia()

    def generate_read_request(self) -> OmhReadRunKeeperRequest:
        return OmhReadRunKeeperRequest(self.api)

    def generate_write_request(self, data: object):
        raise UnsupportedOperationError("Cannot write to this payload ID.")


class RunKeeperPayloadIdBuilder:
    def build(self, payload_id_parts: Sequence[str]) -> RunKeeperPayloadId:
        return RunKeeperPayloadId(payload_id_parts)

    def registry_entries(self) -> list[dict]:
        return [api_class().registry_entry() for api_class in API_FACTORY.values()]


# Third-party domain id -> builder for that domain's payload IDs.
_DOMAINS: dict[str, RunKeeperPayloadIdBuilder] = {}


def register_domain(domain: str, builder: RunKeeperPayloadIdBuilder) -> None:
    if domain in _DOMAINS:
        logger.warning(f"Replacing the payload ID builder for domain={domain}")
    _DOMAINS[domain] = builder


def registered_domains() -> list[str]:
    return sorted(_DOMAINS)


def register_runkeeper() -> None:
    register_domain(DOMAIN_ID, RunKeeperPayloadIdBuilder())


def build_payload_id(
    payload_id: str, payload_version: Optional[str] = None
) -> RunKeeperPayloadId:
    parts = payload_id.split(":")
    if len(parts) < 2 or parts[0] != OMH_NAMESPACE:
        raise PayloadIdValidationError(f"The payload ID is invalid: {payload_id}")
    builder = _DOMAINS.get(parts[1])
    if builder is None:
        raise PayloadIdValidationError(f"The payload ID domain is unknown: {parts[1]}")
    if payload_version is not None and payload_version != PAYLOAD_VERSION:
        raise PayloadIdValidationError(
            f"The payload version is unknown: {payload_version}"
        )
    return builder.build(parts)


def registry_entries(payload_id: Optional[str] = None) -> list[dict]:
    entries = [
        entry
        for domain in registered_domains()
        for entry in _DOMAINS[domain].registry_entries()
    ]
    if payload_id is None:
        return entries
    return [entry for entry in entries if entry["payload_id"] == payload_id]
