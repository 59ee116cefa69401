"""
Field-by-field JSON object builder behind the composer's visual editor.

The builder owns an ordered list of field entries. Every transition re-runs
validation over the whole list, reports the aggregate result through
`on_validation_change`, and emits the materialized object (as indented JSON
text) through `on_change` only while every entry is valid.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Literal, get_args

from json_store import is_valid_json, loads_strict

logger = logging.getLogger(__name__)

FieldType = Literal["string", "number", "boolean", "object"]
FieldProperty = Literal["key", "value", "type"]

FIELD_TYPES: tuple[str, ...] = get_args(FieldType)

# Labels shown in the type picker.
FIELD_TYPE_LABELS: dict[str, str] = {
    "string": "text",
    "number": "number",
    "boolean": "true/false",
    "object": "JSON",
}

NOT_A_NUMBER_MESSAGE = "Not a number!"
INVALID_JSON_MESSAGE = "Invalid JSON!"

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
_INFINITY_RE = re.compile(r"^[+-]?Infinity$")
_RADIX_RE = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_RADIX_BASES = {"x": 16, "o": 8, "b": 2}


def parse_number(raw: str) -> float | None:
    """
    Numeric conversion with browser `Number(text)` rules.

    Returns None where the browser would produce NaN. Blank text is 0.
    """
    s = raw.strip()
    if not s:
        return 0.0
    if _INFINITY_RE.match(s):
        return -math.inf if s.startswith("-") else math.inf
    m = _RADIX_RE.match(s)
    if m:
        try:
            return float(int(m.group(2), _RADIX_BASES[m.group(1).lower()]))
        except ValueError:
            return None
    if _DECIMAL_RE.match(s):
        return float(s)
    return None


def _json_number(n: float) -> int | float | None:
    if not math.isfinite(n):
        # JSON has no Infinity; serialize it the way JSON.stringify does.
        return None
    if n.is_integer():
        return int(n)
    return n


@dataclass(frozen=True)
class FieldEntry:
    id: int
    key: str
    value: str
    type: FieldType = "string"


def field_error(entry: FieldEntry) -> str | None:
    """Per-field error message, or None if the entry is acceptable."""
    if entry.type == "number" and entry.value and parse_number(entry.value) is None:
        return NOT_A_NUMBER_MESSAGE
    if entry.type == "object" and entry.value and not is_valid_json(entry.value):
        return INVALID_JSON_MESSAGE
    return None


def has_errors(entries: list[FieldEntry]) -> bool:
    return any(field_error(e) is not None for e in entries)


def _number_text(val: int | float) -> str:
    # Same text as String(n): 1.0 -> "1", 1e21 -> "1e+21".
    if isinstance(val, float) and val.is_integer() and abs(val) < 1e21:
        return str(int(val))
    return json.dumps(val)


def _entry_for(entry_id: int, key: str, val: Any) -> FieldEntry:
    if isinstance(val, (dict, list)) or val is None:
        return FieldEntry(entry_id, key, json.dumps(val, separators=(",", ":"), ensure_ascii=False), "object")
    if isinstance(val, bool):
        return FieldEntry(entry_id, key, "true" if val else "false", "boolean")
    if isinstance(val, (int, float)):
        return FieldEntry(entry_id, key, _number_text(val), "number")
    return FieldEntry(entry_id, key, str(val), "string")


def parse_initial_fields(value: str) -> list[FieldEntry]:
    """
    Split a JSON object's top-level properties into entries.

    Anything that is not a JSON object yields the single placeholder entry.
    """
    try:
        parsed = loads_strict(value)
    except (TypeError, ValueError):
        parsed = None
    if not isinstance(parsed, dict):
        return [FieldEntry(0, "key", "value", "string")]
    return [_entry_for(i, k, v) for i, (k, v) in enumerate(parsed.items())]


def convert_value(entry: FieldEntry) -> Any:
    if entry.type == "number":
        n = parse_number(entry.value)
        return _json_number(n) if n else 0
    if entry.type == "boolean":
        return entry.value == "true"
    if entry.type == "object":
        try:
            return loads_strict(entry.value)
        except ValueError:
            return {}
    return entry.value


def build_object(entries: list[FieldEntry]) -> dict[str, Any]:
    obj: dict[str, Any] = {}
    for entry in entries:
        if entry.key.strip():
            # Later duplicates overwrite earlier keys.
            obj[entry.key] = convert_value(entry)
    return obj


class JsonBuilder:
    def __init__(
        self,
        value: str,
        on_change: Callable[[str], None],
        on_validation_change: Callable[[bool], None] | None = None,
    ) -> None:
        self._on_change = on_change
        self._on_validation_change = on_validation_change
        self._fields = parse_initial_fields(value)
        self._next_id = len(self._fields)

    @property
    def fields(self) -> list[FieldEntry]:
        return list(self._fields)

    @property
    def valid(self) -> bool:
        return not has_errors(self._fields)

    def get_field(self, field_id: int) -> FieldEntry | None:
        return next((f for f in self._fields if f.id == field_id), None)

    def to_object(self) -> dict[str, Any] | None:
        """The object that would be emitted now, or None while invalid."""
        if not self.valid:
            return None
        return build_object(self._fields)

    def add_field(self) -> FieldEntry:
        entry = FieldEntry(self._next_id, "", "", "string")
        self._next_id += 1
        self._set_fields([*self._fields, entry])
        return entry

    def remove_field(self, field_id: int) -> None:
        self._set_fields([f for f in self._fields if f.id != field_id])

    def update_field(self, field_id: int, prop: FieldProperty, new_value: str) -> None:
        if prop not in ("key", "value", "type"):
            raise ValueError(f"unknown field property: {prop!r}")
        if prop == "type" and new_value not in FIELD_TYPES:
            raise ValueError(f"unknown field type: {new_value!r}")
        self._set_fields([replace(f, **{prop: new_value}) if f.id == field_id else f for f in self._fields])

    def _set_fields(self, new_fields: list[FieldEntry]) -> None:
        self._fields = new_fields
        self._update_parent(new_fields)

    def _update_parent(self, new_fields: list[FieldEntry]) -> None:
        valid = not has_errors(new_fields)

        if self._on_validation_change is not None:
            self._on_validation_change(valid)

        # Keep the caller's last good JSON while any field is in error.
        if not valid:
            logger.debug("JSON BUILDER: %d field(s) in error; emission withheld", len(new_fields))
            return

        self._on_change(json.dumps(build_object(new_fields), indent=2, ensure_ascii=False))
