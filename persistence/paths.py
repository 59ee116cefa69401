from __future__ import annotations

from pathlib import Path

from config import get_config


def data_dir() -> Path:
    return get_config().data_dir


def settings_dir(data_dir: Path) -> Path:
    return data_dir / "settings"


def settings_file(data_dir: Path) -> Path:
    return settings_dir(data_dir) / "settings.json"
