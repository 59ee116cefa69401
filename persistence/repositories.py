from __future__ import annotations

import asyncio
from typing import Protocol

from pydantic import JsonValue

from .settings_state import (
    DiskSettingsStateRepository,
    MemorySettingsStateRepository,
    SettingsRecord,
    SettingsStateRepository,
)


class AsyncSettingsRepository(Protocol):
    """
    Domain-level settings persistence interface used by the HTTP handlers.
    Mirrors a single table: put / get / delete / list-ordered-by-creation.
    """

    async def insert(self, record: SettingsRecord) -> None: ...
    async def get(self, settings_id: str) -> SettingsRecord | None: ...
    async def replace(self, settings_id: str, data: JsonValue, *, updated_at: str) -> SettingsRecord | None: ...
    async def delete(self, settings_id: str) -> None: ...
    async def list_page(self, *, offset: int, limit: int) -> list[SettingsRecord]: ...
    async def count(self) -> int: ...


class _ThreadedSettingsRepository(AsyncSettingsRepository):
    """
    Async wrapper around a sync SettingsStateRepository.
    Uses asyncio.to_thread to avoid blocking the event loop on I/O.
    """

    def __init__(self, state_repo: SettingsStateRepository) -> None:
        self._repo = state_repo

    async def insert(self, record: SettingsRecord) -> None:
        await asyncio.to_thread(self._repo.insert, record)

    async def get(self, settings_id: str) -> SettingsRecord | None:
        return await asyncio.to_thread(self._repo.get, settings_id)

    async def replace(self, settings_id: str, data: JsonValue, *, updated_at: str) -> SettingsRecord | None:
        return await asyncio.to_thread(lambda: self._repo.replace(settings_id, data, updated_at=updated_at))

    async def delete(self, settings_id: str) -> None:
        await asyncio.to_thread(self._repo.delete, settings_id)

    async def list_page(self, *, offset: int, limit: int) -> list[SettingsRecord]:
        return await asyncio.to_thread(lambda: self._repo.list_page(offset=offset, limit=limit))

    async def count(self) -> int:
        return await asyncio.to_thread(self._repo.count)


class AsyncDiskSettingsRepository(_ThreadedSettingsRepository):
    """Disk-backed settings table (one JSON document under the data dir)."""

    def __init__(self, state_repo: DiskSettingsStateRepository | None = None) -> None:
        super().__init__(state_repo or DiskSettingsStateRepository())


class AsyncMemorySettingsRepository(_ThreadedSettingsRepository):
    """In-memory settings table; resets on restart. Used by tests and PERSIST_TO_DISK=false."""

    def __init__(self, state_repo: MemorySettingsStateRepository | None = None) -> None:
        super().__init__(state_repo or MemorySettingsStateRepository())
