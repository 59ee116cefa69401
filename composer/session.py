from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal

from json_store import is_valid_json

from .api_client import NetworkFailure, SettingsApiClient
from .json_builder import FieldProperty, JsonBuilder

logger = logging.getLogger(__name__)

DEFAULT_JSON_INPUT = '{\n  "key": "value"\n}'

EditorMode = Literal["visual", "raw"]


@dataclass
class Pagination:
    page: int = 1
    total_pages: int = 1
    total: int = 0


class ComposerSession:
    """
    View state for one browser: search box, editor, and the paginated list.

    Every public method is one user action. Failures are never raised to the
    caller; they land in `error` / `search_error` as text for the page.
    """

    def __init__(
        self,
        api: SettingsApiClient,
        *,
        page_size: int = 5,
        success_ttl: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api
        self._clock = clock
        self.page_size = page_size
        self.success_ttl = success_ttl

        self.settings: list[dict[str, Any]] = []
        self.pagination = Pagination()

        self.json_input = DEFAULT_JSON_INPUT
        self.editing_id: str | None = None
        self.editor_mode: EditorMode = "visual"
        self.is_json_valid = True
        self.builder = self._new_builder()

        self.error = ""
        self._success = ""
        self._success_expires_at = 0.0

        self.search_id = ""
        self.search_result: dict[str, Any] | None = None
        self.search_error = ""

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    @property
    def success(self) -> str:
        if self._success and self._clock() >= self._success_expires_at:
            self._success = ""
        return self._success

    def _set_success(self, message: str) -> None:
        # A newer message restarts the timer for the old one.
        self._success = message
        self._success_expires_at = self._clock() + self.success_ttl

    # ------------------------------------------------------------------
    # Editor
    # ------------------------------------------------------------------
    def _new_builder(self) -> JsonBuilder:
        return JsonBuilder(
            self.json_input,
            on_change=self._on_builder_change,
            on_validation_change=self._on_builder_validation,
        )

    def _on_builder_change(self, text: str) -> None:
        self.json_input = text

    def _on_builder_validation(self, valid: bool) -> None:
        self.is_json_valid = valid

    def _load_editor(self, text: str) -> None:
        self.json_input = text
        self.builder = self._new_builder()
        self.is_json_valid = self.builder.valid

    @property
    def raw_invalid(self) -> bool:
        return bool(self.json_input) and not is_valid_json(self.json_input)

    @property
    def can_submit(self) -> bool:
        return not (self.editor_mode == "visual" and not self.is_json_valid)

    def set_editor_mode(self, mode: EditorMode) -> None:
        if mode not in ("visual", "raw"):
            raise ValueError(f"unknown editor mode: {mode!r}")
        if mode == "visual" and self.editor_mode != "visual":
            # Re-read whatever was typed in the raw editor.
            self._load_editor(self.json_input)
        self.editor_mode = mode

    def set_raw_input(self, text: str) -> None:
        self.json_input = text

    def add_field(self) -> None:
        self.builder.add_field()

    def remove_field(self, field_id: int) -> None:
        self.builder.remove_field(field_id)

    def update_field(self, field_id: int, prop: FieldProperty, value: str) -> None:
        self.builder.update_field(field_id, prop, value)

    def edit(self, record: dict[str, Any]) -> None:
        self.editing_id = str(record["id"])
        self._load_editor(json.dumps(record.get("data"), indent=2, ensure_ascii=False))
        self.error = ""

    def cancel(self) -> None:
        self.editing_id = None
        self._load_editor(DEFAULT_JSON_INPUT)
        self.error = ""

    def find_record(self, settings_id: str) -> dict[str, Any] | None:
        if self.search_result is not None and self.search_result.get("id") == settings_id:
            return self.search_result
        return next((r for r in self.settings if r.get("id") == settings_id), None)

    # ------------------------------------------------------------------
    # API actions
    # ------------------------------------------------------------------
    def fetch_settings(self, page: int = 1) -> None:
        try:
            resp = self._api.list(page=page, limit=self.page_size)
        except NetworkFailure:
            self.error = "Failed to fetch settings"
            return
        if not resp.ok or not isinstance(resp.body, dict):
            self.error = f"Error {resp.status_code}: Failed to fetch settings"
            return
        self.settings = list(resp.body.get("data") or [])
        info = resp.body.get("pagination") or {}
        self.pagination = Pagination(
            page=int(info.get("page", page)),
            total_pages=int(info.get("totalPages", 1)),
            total=int(info.get("total", 0)),
        )

    def search(self, search_id: str) -> None:
        self.search_id = search_id
        if not search_id.strip():
            self.search_error = "Please enter an ID"
            return

        self.search_error = ""
        self.search_result = None

        try:
            resp = self._api.get(search_id.strip())
        except NetworkFailure:
            self.search_error = "Network error: Failed to connect to server"
            return

        if resp.status_code == 404:
            self.search_error = f'Error 404: Settings with ID "{search_id}" not found'
            return
        if not resp.ok:
            self.search_error = f"Error {resp.status_code}: Failed to fetch settings"
            return
        self.search_result = resp.body

    def clear_search(self) -> None:
        self.search_result = None
        self.search_id = ""
        self.search_error = ""

    def create(self) -> None:
        if not self.can_submit:
            return
        if not is_valid_json(self.json_input):
            self.error = "Invalid JSON format"
            return

        self.error = ""

        try:
            resp = self._api.create(self.json_input)
        except NetworkFailure:
            self.error = "Failed to create settings"
            return

        if not resp.ok:
            self.error = f"Error {resp.status_code}: Failed to create settings"
            return

        created_id = resp.body.get("id") if isinstance(resp.body, dict) else None
        logger.info("COMPOSER CREATE: id=%s", created_id)
        self._load_editor(DEFAULT_JSON_INPUT)
        self._set_success(f"Created successfully! ID: {created_id}")
        self.fetch_settings(self.pagination.page)

    def update(self) -> None:
        if self.editing_id is None or not self.can_submit:
            return
        if not is_valid_json(self.json_input):
            self.error = "Invalid JSON format"
            return

        self.error = ""
        editing_id = self.editing_id

        try:
            resp = self._api.replace(editing_id, self.json_input)
        except NetworkFailure:
            self.error = "Network error: Failed to update settings"
            return

        if resp.status_code == 404:
            # Deleted elsewhere while being edited.
            self.error = f'Error 404: Settings with ID "{editing_id}" not found. It may have been deleted.'
            self.editing_id = None
            self._load_editor(DEFAULT_JSON_INPUT)
            self.fetch_settings(self.pagination.page)
            return

        if not resp.ok:
            self.error = f"Error {resp.status_code}: Failed to update settings"
            return

        self.editing_id = None
        self._load_editor(DEFAULT_JSON_INPUT)
        self._set_success("Updated successfully!")
        self.fetch_settings(self.pagination.page)

    def delete(self, settings_id: str) -> None:
        try:
            resp = self._api.delete(settings_id)
        except NetworkFailure:
            self.error = "Failed to delete settings"
            return

        if resp.status_code == 204:
            self._set_success("Deleted successfully!")
        elif not resp.ok:
            self.error = f"Error {resp.status_code}: Failed to delete settings"

        if self.search_result is not None and self.search_result.get("id") == settings_id:
            self.search_result = None
            self.search_id = ""

        self.fetch_settings(self.pagination.page)
