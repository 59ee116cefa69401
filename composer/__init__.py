from __future__ import annotations

from .api_client import ApiResponse, NetworkFailure, SettingsApiClient
from .json_builder import FieldEntry, JsonBuilder
from .session import ComposerSession

__all__ = [
    "ApiResponse",
    "NetworkFailure",
    "SettingsApiClient",
    "FieldEntry",
    "JsonBuilder",
    "ComposerSession",
]
