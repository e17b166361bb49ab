"""Transaction and last-event endpoints."""
from __future__ import annotations

import re
import uuid as uuidlib
from typing import Any

from fastapi import APIRouter, Depends, Query as QueryParam, Request

from ....domain import InvalidRequestError, Query
from ....services import EventReaderService

router = APIRouter(tags=["monitoring"])

TIME_PERIOD = re.compile(r"^-\d+[msh]$")


def get_reader(request: Request) -> EventReaderService:
    return request.app.state.reader


def _check_content_type(request: Request, content_type: str) -> None:
    if content_type not in request.app.state.settings.allowed_content_types:
        raise InvalidRequestError(f"Invalid content type {content_type}")


def _check_time(name: str, value: str | None) -> None:
    if value and not TIME_PERIOD.match(value):
        raise InvalidRequestError(f"Invalid {name} parameter {value}")


def _check_uuid(value: str) -> None:
    try:
        uuidlib.UUID(value)
    except ValueError:
        raise InvalidRequestError(f"Invalid UUID {value}") from None


@router.get("/{content_type}/transactions")
async def get_transactions(
    request: Request,
    content_type: str,
    uuid: list[str] = QueryParam(default=[]),
    earliest_time: str | None = QueryParam(default=None, alias="earliestTime"),
    latest_time: str | None = QueryParam(default=None, alias="latestTime"),
    reader: EventReaderService = Depends(get_reader),
) -> list[dict[str, Any]]:
    _check_content_type(request, content_type)
    for value in uuid:
        _check_uuid(value)
    _check_time("earliest time", earliest_time)
    _check_time("latest time", latest_time)

    query = Query.build(content_type, earliest_time, latest_time, uuid)
    transactions = await reader.get_transactions(query)
    return [tx.to_dict() for tx in transactions]


@router.get("/{content_type}/events")
async def get_last_event(
    request: Request,
    content_type: str,
    last_event: str | None = QueryParam(default=None, alias="lastEvent"),
    earliest_time: str | None = QueryParam(default=None, alias="earliestTime"),
    reader: EventReaderService = Depends(get_reader),
) -> dict[str, Any]:
    _check_content_type(request, content_type)
    if last_event != "true":
        raise InvalidRequestError(f"lastEvent param must be true for the events endpoint, value is {last_event}")
    _check_time("earliest time", earliest_time)

    event = await reader.get_last_event(Query.build(content_type, earliest_time))
    return event.to_dict()
