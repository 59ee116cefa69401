from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Config:
    # Deployment / URLs
    local_base_url: str
    api_base_url: str
    cors_allow_origins: list[str]

    # Persistence
    persist_to_disk: bool
    data_dir: Path

    # Pagination
    default_page_limit: int
    max_page_limit: int

    # Composer UI
    composer_page_size: int
    success_message_ttl: float
    composer_session_ttl: float
    composer_max_sessions: int

    # Logging
    log_level: str
    debug_log_requests: bool


def get_config() -> Config:
    local_base_url = (os.getenv("LOCAL_BASE_URL", "http://127.0.0.1:8000")).rstrip("/")
    api_base_url = (os.getenv("API_BASE_URL", "") or local_base_url).rstrip("/")

    origins = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

    # Local runs keep data between restarts; tests and serverless deploys switch this off.
    persist_to_disk = _env_bool("PERSIST_TO_DISK", True)
    data_dir_raw = os.getenv("DATA_DIR", "").strip()
    data_dir = Path(data_dir_raw) if data_dir_raw else Path(__file__).resolve().parent / "data"

    return Config(
        local_base_url=local_base_url,
        api_base_url=api_base_url,
        cors_allow_origins=origins or ["*"],
        persist_to_disk=persist_to_disk,
        data_dir=data_dir,
        default_page_limit=max(_env_int("DEFAULT_PAGE_LIMIT", 5), 1),
        # 0 disables the cap
        max_page_limit=max(_env_int("MAX_PAGE_LIMIT", 0), 0),
        composer_page_size=max(_env_int("COMPOSER_PAGE_SIZE", 5), 1),
        success_message_ttl=max(_env_float("SUCCESS_MESSAGE_TTL", 5.0), 0.0),
        composer_session_ttl=max(_env_float("COMPOSER_SESSION_TTL", 1800.0), 1.0),
        composer_max_sessions=max(_env_int("COMPOSER_MAX_SESSIONS", 1000), 1),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        debug_log_requests=_env_bool("DEBUG_LOG_REQUESTS", False),
    )
