import sqlite3
from collections.abc import Generator
from datetime import datetime
from functools import partial
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..db import get_credentials, get_db_dependency
from ..errors import (
    OmhError,
    PayloadIdValidationError,
    ServiceError,
    UnsupportedOperationError,
)
from ..services.columns import ColumnNode
from ..services.payload_ids import build_payload_id, registry_entries
from ..services.runkeeper import MAX_NUMBER_TO_RETURN, PAYLOAD_VERSION

router = APIRouter()

ERROR_STATUS_CODES = (
    (PayloadIdValidationError, 400),
    (UnsupportedOperationError, 405),
    (ServiceError, 502),
)


class OmhWrite(BaseModel):
    payload_id: str
    payload_version: str = PAYLOAD_VERSION
    data: Any = None


def get_http_client() -> Generator[httpx.Client, None, None]:
    with httpx.Client() as client:
        yield client


def _http_error(exc: OmhError) -> HTTPException:
    status_code = 500
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=exc.to_detail())


@router.get("/read")
def read(
    payload_id: str,
    owner: str,
    payload_version: str = PAYLOAD_VERSION,
    t_start: Optional[datetime] = None,
    t_end: Optional[datetime] = None,
    num_to_skip: int = Query(default=0, ge=0),
    num_to_return: int = Query(default=MAX_NUMBER_TO_RETURN, ge=0, le=MAX_NUMBER_TO_RETURN),
    column_list: Optional[str] = None,
    conn: sqlite3.Connection = Depends(get_db_dependency),
    client: httpx.Client = Depends(get_http_client),
):
    try:
        request = build_payload_id(payload_id, payload_version).generate_read_request()
        request.service(
            owner,
            partial(get_credentials, conn),
            t_start,
            t_end,
            num_to_skip,
            num_to_return,
            client=client,
        )
    except (PayloadIdValidationError, ServiceError) as exc:
        raise _http_error(exc) from exc

    count = request.get_num_data_points()
    data = request.respond(ColumnNode.from_column_list(column_list))
    return {"result": "success", "metadata": {"count": count}, "data": data}


@router.post("/write")
def write(entry: OmhWrite):
    try:
        payload = build_payload_id(entry.payload_id, entry.payload_version)
        payload.generate_write_request(entry.data)
    except OmhError as exc:
        raise _http_error(exc) from exc
    return {"result": "success"}


@router.get("/registry")
def registry(payload_id: Optional[str] = None):
    if payload_id is not None:
        try:
            build_payload_id(payload_id)
        except PayloadIdValidationError as exc:
            raise _http_error(exc) from exc
    return registry_entries(payload_id)
