from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import JsonValue

from json_store import loads_payload
from persistence.repositories import AsyncSettingsRepository
from persistence.settings_state import SettingsRecord

from .errors import InvalidJsonBody, SettingsNotFound, error_response
from .pagination import PageRequest

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """UTC timestamp with millisecond precision, e.g. 2025-01-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_settings_id() -> str:
    return str(uuid.uuid4())


async def _read_json_body(request: Request) -> JsonValue:
    raw = await request.body()
    # An empty body is treated as an empty object.
    if not raw.strip():
        return {}
    try:
        return loads_payload(raw)
    except ValueError as e:
        raise InvalidJsonBody(str(e)) from e


def _record_json(record: SettingsRecord, *fields: str) -> dict[str, Any]:
    payload = {"id": record.id, "data": record.data, "createdAt": record.createdAt, "updatedAt": record.updatedAt}
    if fields:
        return {k: payload[k] for k in fields}
    return payload


def create_settings_router(
    repo: AsyncSettingsRepository,
    *,
    default_limit: int = 5,
    max_limit: int = 0,
) -> APIRouter:
    """
    Build the /settings CRUD routes over the given repository.

    Any exception raised by the repository is logged and reported as an
    opaque 500; 404s go through SettingsNotFound.
    """
    router = APIRouter(prefix="/settings", tags=["settings"])

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_settings(request: Request) -> JSONResponse:
        data = await _read_json_body(request)
        now = utc_now_iso()
        record = SettingsRecord.build(new_settings_id(), data, created_at=now, updated_at=now)
        try:
            await repo.insert(record)
        except Exception:
            logger.exception("SETTINGS CREATE: store failure")
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create settings")
        logger.info("SETTINGS CREATE: id=%s", record.id)
        return JSONResponse(_record_json(record), status_code=status.HTTP_201_CREATED)

    @router.get("")
    async def list_settings(
        page: str | None = Query(None),
        limit: str | None = Query(None),
    ) -> JSONResponse:
        req = PageRequest.from_query(page, limit, default_limit=default_limit, max_limit=max_limit)
        try:
            total = await repo.count()
            records = await repo.list_page(offset=req.offset, limit=req.limit)
        except Exception:
            logger.exception("SETTINGS LIST: store failure (page=%s limit=%s)", req.page, req.limit)
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch settings")
        return JSONResponse(
            {
                "data": [_record_json(r) for r in records],
                "pagination": req.info(total),
            }
        )

    @router.get("/{settings_id}")
    async def get_settings(settings_id: str) -> JSONResponse:
        try:
            record = await repo.get(settings_id)
        except Exception:
            logger.exception("SETTINGS GET: store failure id=%s", settings_id)
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch settings")
        if record is None:
            raise SettingsNotFound(settings_id)
        return JSONResponse(_record_json(record))

    @router.put("/{settings_id}")
    async def replace_settings(settings_id: str, request: Request) -> JSONResponse:
        data = await _read_json_body(request)
        try:
            # Replace only; an unknown id is never created.
            record = await repo.replace(settings_id, data, updated_at=utc_now_iso())
        except Exception:
            logger.exception("SETTINGS UPDATE: store failure id=%s", settings_id)
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update settings")
        if record is None:
            raise SettingsNotFound(settings_id)
        logger.info("SETTINGS UPDATE: id=%s", settings_id)
        return JSONResponse(_record_json(record, "id", "data", "updatedAt"))

    @router.delete("/{settings_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_settings(settings_id: str) -> Response:
        try:
            await repo.delete(settings_id)
        except Exception:
            logger.exception("SETTINGS DELETE: store failure id=%s", settings_id)
            return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete settings")
        logger.info("SETTINGS DELETE: id=%s", settings_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
