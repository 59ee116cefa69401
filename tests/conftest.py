from __future__ import annotations

from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def sandbox_project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Redirect persistence paths to a temp directory so tests never touch real ./data.
    """
    import persistence.paths as paths

    data = tmp_path / "data"
    monkeypatch.setenv("DATA_DIR", str(data))
    monkeypatch.setenv("PERSIST_TO_DISK", "false")
    monkeypatch.setattr(paths, "data_dir", lambda: data)
    return tmp_path


@pytest.fixture
def memory_repo():
    from persistence.repositories import AsyncMemorySettingsRepository

    return AsyncMemorySettingsRepository()


@pytest.fixture
def api_app(sandbox_project: Path, memory_repo):
    import app as app_module

    return app_module.create_app(memory_repo)


@pytest.fixture
def client(api_app):
    from fastapi.testclient import TestClient

    return TestClient(api_app)


@pytest.fixture
def fixed_clock(monkeypatch: pytest.MonkeyPatch):
    """
    Make API timestamps deterministic and strictly increasing (one second apart).
    """
    import endpoints.settings_endpoints as settings_endpoints

    ticks = {"n": 0}

    def _now() -> str:
        ticks["n"] += 1
        return f"2025-01-01T00:00:{ticks['n']:02d}.000Z"

    monkeypatch.setattr(settings_endpoints, "utc_now_iso", _now)
    return ticks
