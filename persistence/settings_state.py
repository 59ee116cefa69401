from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, JsonValue

from .disk_store import DiskJsonDocumentStore
from . import paths


class SettingsRow(BaseModel):
    """
    Mirrors one persisted row exactly:
      { "id": "...", "data": "<json text>", "created_at": "...", "updated_at": "..." }
    """

    id: str
    data: str
    created_at: str
    updated_at: str


class SettingsRecord(BaseModel):
    id: str
    data: JsonValue
    createdAt: str
    updatedAt: str

    @classmethod
    def build(cls, settings_id: str, data: JsonValue, *, created_at: str, updated_at: str) -> "SettingsRecord":
        """
        Wrap an already-parsed payload without revalidating it; payloads may
        nest deeper than JsonValue validation allows.
        """
        return cls.model_construct(id=settings_id, data=data, createdAt=created_at, updatedAt=updated_at)

    @classmethod
    def from_row(cls, row: SettingsRow) -> "SettingsRecord":
        return cls.build(row.id, json.loads(row.data), created_at=row.created_at, updated_at=row.updated_at)

    def to_row(self) -> SettingsRow:
        return SettingsRow(
            id=self.id,
            data=json.dumps(self.data, ensure_ascii=True, allow_nan=False),
            created_at=self.createdAt,
            updated_at=self.updatedAt,
        )


def _newest_first(rows: list[SettingsRow]) -> list[SettingsRow]:
    # sorted() is stable, so rows sharing a timestamp keep their stored order.
    return sorted(rows, key=lambda r: r.created_at, reverse=True)


def _page(rows: list[SettingsRow], offset: int, limit: int) -> list[SettingsRecord]:
    return [SettingsRecord.from_row(r) for r in _newest_first(rows)[offset : offset + limit]]


class SettingsStateRepository(Protocol):
    def insert(self, record: SettingsRecord) -> None:
        ...

    def get(self, settings_id: str) -> SettingsRecord | None:
        ...

    def replace(self, settings_id: str, data: JsonValue, *, updated_at: str) -> SettingsRecord | None:
        """Overwrite data + updatedAt. Returns None (and writes nothing) if the id is absent."""
        ...

    def delete(self, settings_id: str) -> None:
        ...

    def list_page(self, *, offset: int, limit: int) -> list[SettingsRecord]:
        """Records ordered by createdAt descending."""
        ...

    def count(self) -> int:
        ...


class MemorySettingsStateRepository(SettingsStateRepository):
    """
    Process-local table. Rows are kept serialized so callers never share
    mutable payloads with the store.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, SettingsRow] = {}

    def insert(self, record: SettingsRecord) -> None:
        row = record.to_row()
        with self._lock:
            self._rows[row.id] = row

    def get(self, settings_id: str) -> SettingsRecord | None:
        with self._lock:
            row = self._rows.get(settings_id)
        return SettingsRecord.from_row(row) if row is not None else None

    def replace(self, settings_id: str, data: JsonValue, *, updated_at: str) -> SettingsRecord | None:
        with self._lock:
            row = self._rows.get(settings_id)
            if row is None:
                return None
            current = SettingsRecord.from_row(row)
            updated = current.model_copy(update={"data": data, "updatedAt": updated_at})
            self._rows[settings_id] = updated.to_row()
        return updated

    def delete(self, settings_id: str) -> None:
        with self._lock:
            self._rows.pop(settings_id, None)

    def list_page(self, *, offset: int, limit: int) -> list[SettingsRecord]:
        with self._lock:
            rows = list(self._rows.values())
        return _page(rows, offset, limit)

    def count(self) -> int:
        with self._lock:
            return len(self._rows)


class DiskSettingsStateRepository(SettingsStateRepository):
    """
    Stores every row in one JSON document:

    - data/settings/settings.json  ->  { "<id>": { id, data, created_at, updated_at } }

    The file is created on first write.
    """

    def __init__(self, path: Path | None = None):
        self._store = DiskJsonDocumentStore(path or paths.settings_file(paths.data_dir()))

    @property
    def path(self) -> Path:
        return self._store.path

    @staticmethod
    def _rows(doc: Mapping[str, Any]) -> list[SettingsRow]:
        return [SettingsRow.model_validate(v) for v in doc.values() if isinstance(v, dict)]

    def insert(self, record: SettingsRecord) -> None:
        row = record.to_row()
        with self._store.transaction() as doc:
            doc[row.id] = row.model_dump(mode="json")

    def get(self, settings_id: str) -> SettingsRecord | None:
        rec = self._store.load().get(settings_id)
        if not isinstance(rec, dict):
            return None
        return SettingsRecord.from_row(SettingsRow.model_validate(rec))

    def replace(self, settings_id: str, data: JsonValue, *, updated_at: str) -> SettingsRecord | None:
        with self._store.transaction() as doc:
            rec = doc.get(settings_id)
            if not isinstance(rec, dict):
                return None
            current = SettingsRecord.from_row(SettingsRow.model_validate(rec))
            updated = current.model_copy(update={"data": data, "updatedAt": updated_at})
            doc[settings_id] = updated.to_row().model_dump(mode="json")
        return updated

    def delete(self, settings_id: str) -> None:
        with self._store.transaction() as doc:
            doc.pop(settings_id, None)

    def list_page(self, *, offset: int, limit: int) -> list[SettingsRecord]:
        return _page(self._rows(self._store.load()), offset, limit)

    def count(self) -> int:
        return len(self._rows(self._store.load()))
