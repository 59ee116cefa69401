from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Settings not found"
INVALID_JSON_MESSAGE = "Invalid JSON"


class SettingsNotFound(Exception):
    def __init__(self, settings_id: str):
        super().__init__(f"settings {settings_id!r} not found")
        self.settings_id = settings_id


class InvalidJsonBody(Exception):
    pass


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def register_error_handlers(app: FastAPI) -> None:
    """
    Map domain errors to `{"error": "..."}` bodies.

    Store failures are handled inside each route so the 500 message can
    name the failed operation; the catch-all here never leaks details.
    """

    @app.exception_handler(SettingsNotFound)
    async def settings_not_found_handler(request: Request, exc: SettingsNotFound):
        logger.debug("SETTINGS NOT FOUND: %s %s id=%s", request.method, request.url.path, exc.settings_id)
        return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)

    @app.exception_handler(InvalidJsonBody)
    async def invalid_json_handler(request: Request, exc: InvalidJsonBody):
        logger.info("INVALID BODY: %s %s: %s", request.method, request.url.path, exc)
        return error_response(status.HTTP_400_BAD_REQUEST, INVALID_JSON_MESSAGE)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("UNHANDLED: %s %s", request.method, request.url.path, exc_info=exc)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
