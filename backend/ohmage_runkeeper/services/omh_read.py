from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from enum import Enum
from typing import Optional

import httpx
from loguru import logger

from ..errors import RunKeeperApiError, ServiceError
from .columns import ColumnNode
from .runkeeper import DOMAIN_ID, MAX_NUMBER_TO_RETURN, RunKeeperApi

# Given a third-party domain id, returns that domain's stored credentials.
CredentialLookup = Callable[[str], Mapping[str, str]]


class RequestState(str, Enum):
    constructed = "constructed"
    serviced = "serviced"
    responded = "responded"


class OmhReadRunKeeperRequest:
    """An Open mHealth read of one RunKeeper API on behalf of one owner."""

    def __init__(self, api: Optional[RunKeeperApi]):
        if api is None:
            raise ValueError("The API is null.")
        logger.info("Creating an OMH read request for RunKeeper.")
        self.api = api
        self.state = RequestState.constructed
        self.linked = False

    def service(
        self,
        owner: str,
        get_credentials: CredentialLookup,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        num_to_skip: int = 0,
        num_to_return: int = MAX_NUMBER_TO_RETURN,
        *,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if self.state is not RequestState.constructed:
            raise RuntimeError("The RunKeeper read request was already serviced.")

        logger.info("Servicing an OMH read request for RunKeeper.")
        logger.info("Getting the authentication credentials for RunKeeper.")
        bearer = get_credentials(DOMAIN_ID).get(f"bearer_{owner}")
        if bearer is None:
            logger.info("The user's account is not linked, so we are returning no data.")
            self.state = RequestState.serviced
            return

        self.linked = True
        logger.info(f"Calling the RunKeeper API: {self.api.uri}")
        try:
            self.api.service(
                bearer,
                start_date,
                end_date,
                num_to_skip,
                num_to_return,
                client=client,
            )
        except RunKeeperApiError as exc:
            logger.warning(f"Could not retrieve the RunKeeper data: {exc}")
            raise ServiceError(f"Could not retrieve the data: {exc}") from exc
        self.state = RequestState.serviced

    def _require_serviced(self):
        if self.state is RequestState.constructed:
            raise RuntimeError("The RunKeeper read request has not been serviced.")

    def get_num_data_points(self) -> int:
        self._require_serviced()
        if not self.linked:
            return 0
        return self.api.get_num_data_points()

    def respond(self, columns: Optional[ColumnNode] = None) -> list[dict]:
        self._require_serviced()
        logger.info("Responding to an OMH read request for RunKeeper data.")
        self.state = RequestState.responded
        if not self.linked:
            return []
        return self.api.respond(columns)
