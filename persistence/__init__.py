from __future__ import annotations

from .repositories import (
    AsyncDiskSettingsRepository,
    AsyncMemorySettingsRepository,
    AsyncSettingsRepository,
)
from .settings_state import (
    DiskSettingsStateRepository,
    MemorySettingsStateRepository,
    SettingsRecord,
    SettingsRow,
    SettingsStateRepository,
)

__all__ = [
    "SettingsRecord",
    "SettingsRow",
    "SettingsStateRepository",
    "DiskSettingsStateRepository",
    "MemorySettingsStateRepository",
    "AsyncSettingsRepository",
    "AsyncDiskSettingsRepository",
    "AsyncMemorySettingsRepository",
]
