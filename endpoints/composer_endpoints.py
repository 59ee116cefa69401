from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from typing import Callable, Literal

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from composer.api_client import SettingsApiClient
from composer.session import ComposerSession
from composer.views import render_page

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "composer_session"
UI_PATH = "/ui"


class ComposerSessionRegistry:
    """
    In-memory composer sessions keyed by cookie (resets on restart).

    Sessions idle for longer than `idle_ttl` seconds are dropped, and the
    least recently used one is evicted once `max_sessions` is reached.
    """

    def __init__(
        self,
        factory: Callable[[], ComposerSession],
        *,
        idle_ttl: float = 1800.0,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self._idle_ttl = idle_ttl
        self._max_sessions = max_sessions
        self._clock = clock
        self._lock = threading.Lock()
        # sid -> (session, last seen); oldest first
        self._sessions: OrderedDict[str, tuple[ComposerSession, float]] = OrderedDict()

    def _prune(self, now: float) -> None:
        while self._sessions:
            sid, (_, seen) = next(iter(self._sessions.items()))
            if now - seen < self._idle_ttl:
                break
            del self._sessions[sid]
            logger.debug("COMPOSER SESSION: expired %s", sid)

    def get(self, sid: str | None) -> ComposerSession | None:
        if not sid:
            return None
        now = self._clock()
        with self._lock:
            self._prune(now)
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            self._sessions[sid] = (entry[0], now)
            self._sessions.move_to_end(sid)
            return entry[0]

    def create(self) -> tuple[str, ComposerSession]:
        sid = f"cmp_{uuid.uuid4().hex}"
        session = self._factory()
        now = self._clock()
        with self._lock:
            self._prune(now)
            while len(self._sessions) >= self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug("COMPOSER SESSION: evicted %s", evicted)
            self._sessions[sid] = (session, now)
        logger.debug("COMPOSER SESSION: created %s", sid)
        return sid, session

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _set_session_cookie(resp: Response, sid: str) -> None:
    resp.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=sid,
        httponly=True,
        samesite="lax",
        secure=False,
        path="/",
    )


def create_composer_router(
    *,
    api_base_url: str = "",
    page_size: int = 5,
    success_ttl: float = 5.0,
    session_ttl: float = 1800.0,
    max_sessions: int = 1000,
) -> APIRouter:
    """
    Server-rendered composer UI.

    GET /ui renders the page; every POST under /ui applies one session action
    and redirects back (POST/redirect/GET). The API client is read from
    `app.state.api_client`; when none was injected one is created for
    `api_base_url` on first use and closed by the app lifespan.
    """
    router = APIRouter(tags=["composer"])
    registry: ComposerSessionRegistry | None = None
    registry_lock = threading.Lock()

    def _registry(request: Request) -> ComposerSessionRegistry:
        nonlocal registry
        with registry_lock:
            if registry is None:
                api: SettingsApiClient | None = getattr(request.app.state, "api_client", None)
                if api is None:
                    api = SettingsApiClient(api_base_url)
                    request.app.state.api_client = api
                registry = ComposerSessionRegistry(
                    lambda: ComposerSession(api, page_size=page_size, success_ttl=success_ttl),
                    idle_ttl=session_ttl,
                    max_sessions=max_sessions,
                )
            return registry

    def _session(request: Request) -> tuple[ComposerSession, str | None]:
        """Return the caller's session and, if it was just created, its new id."""
        reg = _registry(request)
        session = reg.get(request.cookies.get(SESSION_COOKIE_NAME))
        if session is not None:
            return session, None
        sid, session = reg.create()
        # First visit: load the first page, like a freshly opened page would.
        session.fetch_settings(1)
        return session, sid

    def _act(request: Request, action: Callable[[ComposerSession], None]) -> RedirectResponse:
        session, new_sid = _session(request)
        action(session)
        resp = RedirectResponse(url=UI_PATH, status_code=303)
        if new_sid:
            _set_session_cookie(resp, new_sid)
        return resp

    @router.get("/")
    def root() -> RedirectResponse:
        return RedirectResponse(url=UI_PATH, status_code=302)

    @router.get(UI_PATH)
    def composer_page(request: Request) -> HTMLResponse:
        session, new_sid = _session(request)
        resp = HTMLResponse(render_page(session), status_code=200)
        if new_sid:
            _set_session_cookie(resp, new_sid)
        return resp

    @router.post(f"{UI_PATH}/search")
    def search(request: Request, search_id: str = Form("")) -> RedirectResponse:
        return _act(request, lambda s: s.search(search_id))

    @router.post(f"{UI_PATH}/search/clear")
    def clear_search(request: Request) -> RedirectResponse:
        return _act(request, lambda s: s.clear_search())

    @router.post(f"{UI_PATH}/page/{{page}}")
    def page(request: Request, page: int) -> RedirectResponse:
        return _act(request, lambda s: s.fetch_settings(max(page, 1)))

    @router.post(f"{UI_PATH}/mode/{{mode}}")
    def editor_mode(request: Request, mode: Literal["visual", "raw"]) -> RedirectResponse:
        return _act(request, lambda s: s.set_editor_mode(mode))

    @router.post(f"{UI_PATH}/raw")
    def raw_input(request: Request, json_input: str = Form("")) -> RedirectResponse:
        return _act(request, lambda s: s.set_raw_input(json_input))

    def _with_raw(json_input: str, then: Callable[[ComposerSession], None]) -> Callable[[ComposerSession], None]:
        def run(s: ComposerSession) -> None:
            if s.editor_mode == "raw":
                s.set_raw_input(json_input)
            then(s)

        return run

    @router.post(f"{UI_PATH}/create")
    def create(request: Request, json_input: str = Form("")) -> RedirectResponse:
        return _act(request, _with_raw(json_input, lambda s: s.create()))

    @router.post(f"{UI_PATH}/update")
    def update(request: Request, json_input: str = Form("")) -> RedirectResponse:
        return _act(request, _with_raw(json_input, lambda s: s.update()))

    @router.post(f"{UI_PATH}/cancel")
    def cancel(request: Request) -> RedirectResponse:
        return _act(request, lambda s: s.cancel())

    @router.post(f"{UI_PATH}/edit/{{settings_id}}")
    def edit(request: Request, settings_id: str) -> RedirectResponse:
        def run(s: ComposerSession) -> None:
            record = s.find_record(settings_id)
            if record is None:
                s.error = f'Settings with ID "{settings_id}" is not on this page'
                return
            s.edit(record)

        return _act(request, run)

    @router.post(f"{UI_PATH}/delete/{{settings_id}}")
    def delete(request: Request, settings_id: str) -> RedirectResponse:
        return _act(request, lambda s: s.delete(settings_id))

    @router.post(f"{UI_PATH}/field/add")
    def add_field(request: Request) -> RedirectResponse:
        return _act(request, lambda s: s.add_field())

    @router.post(f"{UI_PATH}/field/{{field_id}}/remove")
    def remove_field(request: Request, field_id: int) -> RedirectResponse:
        return _act(request, lambda s: s.remove_field(field_id))

    @router.post(f"{UI_PATH}/field/{{field_id}}")
    async def update_field(request: Request, field_id: int) -> RedirectResponse:
        # Read the form directly: a blank input must clear the key or value.
        form = await request.form()
        key = form.get("key")
        field_type = form.get("type")
        value = form.get("value")

        def run(s: ComposerSession) -> None:
            current = s.builder.get_field(field_id)
            if current is None:
                return
            # Apply only what changed, one transition per property.
            if key is not None and key != current.key:
                s.update_field(field_id, "key", key)
            if field_type is not None and field_type != current.type:
                try:
                    s.update_field(field_id, "type", field_type)
                except ValueError:
                    s.error = f"Unknown field type: {field_type}"
                    return
            if value is not None and value != current.value:
                s.update_field(field_id, "value", value)

        return await run_in_threadpool(_act, request, run)

    return router
