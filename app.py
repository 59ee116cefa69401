from __future__ import annotations

import contextlib
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv

from composer.api_client import SettingsApiClient
from config import get_config
from endpoints.composer_endpoints import create_composer_router
from endpoints.errors import register_error_handlers
from endpoints.settings_endpoints import create_settings_router
from persistence.repositories import (
    AsyncDiskSettingsRepository,
    AsyncMemorySettingsRepository,
    AsyncSettingsRepository,
)

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    client: SettingsApiClient | None = getattr(app.state, "api_client", None)
    if client is not None:
        client.close()


def create_app(
    repo: AsyncSettingsRepository | None = None,
    *,
    api_client: SettingsApiClient | None = None,
) -> FastAPI:
    load_dotenv("local.env")
    config = get_config()

    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

    if repo is None:
        repo = AsyncDiskSettingsRepository() if config.persist_to_disk else AsyncMemorySettingsRepository()
    logger.info("SETTINGS STORE: using %s", type(repo).__name__)

    app = FastAPI(title="Settings Store", lifespan=lifespan)
    # None until the composer first needs it.
    app.state.api_client = api_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.debug_log_requests:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            logger.info(
                "REQUEST: %s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response

    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(
        create_settings_router(
            repo,
            default_limit=config.default_page_limit,
            max_limit=config.max_page_limit,
        )
    )
    app.include_router(
        create_composer_router(
            api_base_url=config.api_base_url,
            page_size=config.composer_page_size,
            success_ttl=config.success_message_ttl,
            session_ttl=config.composer_session_ttl,
            max_sessions=config.composer_max_sessions,
        )
    )

    return app


app = create_app()


def main() -> None:
    import uvicorn

    config = get_config()
    host, _, port = config.local_base_url.rsplit("/", 1)[-1].partition(":")
    uvicorn.run(app, host=host or "127.0.0.1", port=int(port or 8000))


if __name__ == "__main__":
    main()
