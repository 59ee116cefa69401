from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

SETTINGS_PATH = "/settings"


def _item_path(settings_id: str) -> str:
    return f"{SETTINGS_PATH}/{quote(settings_id, safe='')}"


class NetworkFailure(Exception):
    """The API could not be reached (connection refused, timeout, ...)."""


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class SettingsApiClient:
    """
    Thin HTTP client for the settings API.

    Never raises on HTTP error statuses; callers decide how to present them.
    Transport errors surface as NetworkFailure.
    """

    def __init__(self, base_url: str = "", *, client: httpx.Client | None = None) -> None:
        self._client = client if client is not None else httpx.Client(base_url=base_url)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> ApiResponse:
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning("API CLIENT: %s %s failed: %r", method, url, e)
            raise NetworkFailure(str(e)) from e
        body: Any = None
        if resp.content:
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
        logger.debug("API CLIENT: %s %s -> %s", method, url, resp.status_code)
        return ApiResponse(status_code=resp.status_code, body=body)

    def list(self, page: int = 1, limit: int = 5) -> ApiResponse:
        return self._request("GET", SETTINGS_PATH, params={"page": page, "limit": limit})

    def get(self, settings_id: str) -> ApiResponse:
        return self._request("GET", _item_path(settings_id))

    def create(self, body: str) -> ApiResponse:
        return self._request("POST", SETTINGS_PATH, content=body, headers={"Content-Type": "application/json"})

    def replace(self, settings_id: str, body: str) -> ApiResponse:
        return self._request(
            "PUT",
            _item_path(settings_id),
            content=body,
            headers={"Content-Type": "application/json"},
        )

    def delete(self, settings_id: str) -> ApiResponse:
        return self._request("DELETE", _item_path(settings_id))
