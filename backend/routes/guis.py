"""
Seven GUIs routes: the page, its event endpoint and source listings.

The browser only posts widget events. The session snapshot goes through the
pure reducer and the active task is re-rendered on the server.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse

from backend.config import settings
from backend.models.guis import GuiEvent, GuiEventResponse, SourceListing
from backend.services.sessions import Session, SessionStore
from backend.services.source_view import count_sloc, task_source
from engine.kernel.reducer import reduce
from engine.kernel.renderer import format_value, render_nav, render_page, render_task
from engine.kernel.types import TASKS

logger = logging.getLogger(__name__)

router = APIRouter(tags=["seven-guis"])

SESSION_COOKIE = "guis_session"


def get_sessions(request: Request) -> SessionStore:
    """FastAPI dependency: the app's SessionStore."""
    return request.app.state.sessions


def _json_safe(value: Any) -> Any:
    """Replace non-finite floats (NaN results, inf literals) with their display text."""
    if isinstance(value, float) and not math.isfinite(value):
        return format_value(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


def _prepare(snapshot: dict[str, Any], today: date) -> dict[str, Any]:
    """Fill task defaults that depend on the date before the task is shown."""
    if snapshot["task"] == "Booking" and snapshot["booking"]["departure"] is None:
        result = reduce(snapshot, {"t": "booking.defaults", "p": {"today": today.isoformat()}})
        if result.accepted:
            return result.snapshot
    return snapshot


def _render_content(snapshot: dict[str, Any], now: float, today: date) -> str:
    return render_nav(snapshot["task"]) + "\n" + render_task(snapshot, now=now, today=today)


def _set_session_cookie(response: Response, session: Session) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session.id,
        httponly=True,
        samesite="lax",
        max_age=settings.SESSION_TIMEOUT_SECONDS,
    )


@router.get("/seven-guis", response_class=HTMLResponse)
async def seven_guis_page(
    sessions: Annotated[SessionStore, Depends(get_sessions)],
    task: str | None = None,
    guis_session: Annotated[str | None, Cookie()] = None,
) -> Response:
    """Serve the seven GUIs page, optionally switching to `task`."""
    if task is not None and task not in TASKS:
        return HTMLResponse(
            content="<html><body><h1>404: Unknown task</h1></body></html>",
            status_code=404,
        )

    now, today = time.time(), date.today()
    async with sessions.locked(guis_session) as session:
        snapshot = session.snapshot
        if task is not None:
            snapshot = reduce(snapshot, {"t": "nav.select", "p": {"task": task}}).snapshot
        session.snapshot = _prepare(snapshot, today)
        content = _render_content(session.snapshot, now, today)

    body = f'<h1>7GUIs</h1>\n<div id="content">\n{content}\n</div>'
    response = HTMLResponse(render_page("7GUIs", body))
    _set_session_cookie(response, session)
    return response


@router.post("/api/seven-guis/events", response_model=GuiEventResponse)
async def post_event(
    event: GuiEvent,
    response: Response,
    sessions: Annotated[SessionStore, Depends(get_sessions)],
    guis_session: Annotated[str | None, Cookie()] = None,
) -> GuiEventResponse:
    """
    Apply one widget event to the session snapshot.

    The server supplies `now` and `today`, so timers and date limits
    never depend on the client clock.
    """
    now, today = time.time(), date.today()
    payload = {**event.p, "now": now, "today": today.isoformat()}

    async with sessions.locked(guis_session) as session:
        result = reduce(session.snapshot, {"t": event.t, "p": payload}, max_depth=settings.CELLS_MAX_DEPTH)
        if result.accepted:
            session.snapshot = _prepare(result.snapshot, today)
        else:
            logger.info("guis: rejected %s for session %s: %s", event.t, session.id, result.reason)
        snapshot = session.snapshot
        html = _render_content(snapshot, now, today)

    _set_session_cookie(response, session)
    signal = result.signal or {}
    toast = None
    if not result.accepted and result.reason:
        toast = result.reason.split(": ", 1)[-1]
    return GuiEventResponse(
        accepted=result.accepted,
        reason=result.reason,
        state=_json_safe(snapshot),
        html=html,
        toast=toast,
        confirm=signal.get("confirm"),
    )


@router.get("/api/seven-guis/state")
async def get_state(
    response: Response,
    sessions: Annotated[SessionStore, Depends(get_sessions)],
    guis_session: Annotated[str | None, Cookie()] = None,
) -> dict[str, Any]:
    """The session snapshot as JSON."""
    async with sessions.locked(guis_session) as session:
        snapshot = session.snapshot
    _set_session_cookie(response, session)
    return _json_safe(snapshot)


@router.get("/api/seven-guis/fragment")
async def get_fragment(
    response: Response,
    sessions: Annotated[SessionStore, Depends(get_sessions)],
    guis_session: Annotated[str | None, Cookie()] = None,
) -> dict[str, str]:
    """Re-render the active task without an event (the timer polls this)."""
    now, today = time.time(), date.today()
    async with sessions.locked(guis_session) as session:
        html = _render_content(session.snapshot, now, today)
    _set_session_cookie(response, session)
    return {"html": html}


@router.get("/api/seven-guis/source/{task}", response_model=SourceListing)
async def get_source(task: str) -> SourceListing:
    """Source of the reducer handlers behind a task."""
    if task not in TASKS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown task '{task}'.")
    source = task_source(task)
    return SourceListing(task=task, sloc=count_sloc(source), source=source)
