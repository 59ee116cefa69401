from __future__ import annotations

import asyncio
import json

import pytest

from persistence.repositories import AsyncDiskSettingsRepository, AsyncMemorySettingsRepository
from persistence.settings_state import DiskSettingsStateRepository, SettingsRecord


def _record(n: int, *, data=None) -> SettingsRecord:
    ts = f"2025-01-01T00:00:{n:02d}.000Z"
    return SettingsRecord(id=f"id-{n}", data={"n": n} if data is None else data, createdAt=ts, updatedAt=ts)


@pytest.fixture(params=["memory", "disk"])
def repo(request, sandbox_project):
    if request.param == "memory":
        return AsyncMemorySettingsRepository()
    return AsyncDiskSettingsRepository()


def test_async_settings_repository_basic_flow(repo):
    async def _run():
        assert await repo.count() == 0
        assert await repo.list_page(offset=0, limit=5) == []

        await repo.insert(_record(1, data={"nested": {"a": [1, None, True]}}))
        got = await repo.get("id-1")
        assert got is not None
        assert got.data == {"nested": {"a": [1, None, True]}}
        assert await repo.get("missing") is None

        updated = await repo.replace("id-1", {"b": 2}, updated_at="2025-01-02T00:00:00.000Z")
        assert updated is not None
        assert updated.data == {"b": 2}
        assert updated.createdAt == "2025-01-01T00:00:01.000Z"
        assert updated.updatedAt == "2025-01-02T00:00:00.000Z"

        assert await repo.replace("missing", {"x": 1}, updated_at="2025-01-02T00:00:00.000Z") is None
        assert await repo.count() == 1

        await repo.delete("id-1")
        await repo.delete("id-1")
        assert await repo.get("id-1") is None
        assert await repo.count() == 0

    asyncio.run(_run())


def test_async_settings_repository_orders_newest_first(repo):
    async def _run():
        for n in (2, 5, 1, 4, 3):
            await repo.insert(_record(n))
        page1 = await repo.list_page(offset=0, limit=2)
        page2 = await repo.list_page(offset=2, limit=2)
        page3 = await repo.list_page(offset=4, limit=2)
        assert [r.id for r in page1] == ["id-5", "id-4"]
        assert [r.id for r in page2] == ["id-3", "id-2"]
        assert [r.id for r in page3] == ["id-1"]
        assert await repo.list_page(offset=10, limit=2) == []

    asyncio.run(_run())


def test_stored_payload_is_not_shared_with_caller(sandbox_project):
    async def _run():
        repo = AsyncMemorySettingsRepository()
        payload = {"a": [1]}
        await repo.insert(_record(1, data=payload))
        payload["a"].append(2)
        got = await repo.get("id-1")
        assert got is not None and got.data == {"a": [1]}

    asyncio.run(_run())


def test_disk_repository_persists_rows_as_json_text(tmp_path):
    path = tmp_path / "settings" / "settings.json"
    first = DiskSettingsStateRepository(path)
    assert not path.exists()

    first.insert(_record(1, data={"theme": "dark"}))

    doc = json.loads(path.read_text(encoding="utf-8"))
    assert doc["id-1"] == {
        "id": "id-1",
        "data": '{"theme": "dark"}',
        "created_at": "2025-01-01T00:00:01.000Z",
        "updated_at": "2025-01-01T00:00:01.000Z",
    }

    second = DiskSettingsStateRepository(path)
    got = second.get("id-1")
    assert got is not None
    assert got.data == {"theme": "dark"}


def test_disk_repository_surfaces_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{ definitely not json", encoding="utf-8")
    repo = DiskSettingsStateRepository(path)
    with pytest.raises(ValueError):
        repo.count()


def test_rows_store_ascii_escaped_json_text():
    record = SettingsRecord.build("id-1", {"text": "café"}, created_at="t", updated_at="t")
    row = record.to_row()
    assert row.data == '{"text": "caf\\u00e9"}'
    assert SettingsRecord.from_row(row).data == {"text": "café"}


def test_deeply_nested_payload_survives_both_stores(repo):
    depth = 300
    nested: list = []
    for _ in range(depth - 1):
        nested = [nested]

    async def _run():
        await repo.insert(SettingsRecord.build("deep", nested, created_at="t", updated_at="t"))
        got = await repo.get("deep")
        assert got is not None and got.data == nested
        assert [r.id for r in await repo.list_page(offset=0, limit=5)] == ["deep"]

    asyncio.run(_run())
