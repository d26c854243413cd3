"""
Pagekit FastAPI application.

Entry point for the API server: the seven GUIs showcase and the todo lists.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from backend.backends import Backends
from backend.config import settings
from backend.routes import auth_routes
from backend.routes import guis as guis_routes
from backend.routes import todos as todo_routes
from backend.routes import ws as ws_routes
from backend.services.sessions import SessionStore, cleanup_task
from engine.kernel.renderer import render_page
from engine.kernel.types import TODO_BACKENDS

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown logic:
    - Connect the configured todo backends (unless injected)
    - Start background session cleanup task
    - Close the backends on shutdown
    """
    # Startup
    owns_backends = getattr(app.state, "backends", None) is None
    if owns_backends:
        app.state.backends = await Backends.from_settings(settings)
    logger.info("main: backends ready")

    cleanup_task_handle = asyncio.create_task(cleanup_task(app.state.sessions))
    logger.info("main: session cleanup task started")

    yield

    # Shutdown
    cleanup_task_handle.cancel()
    try:
        await cleanup_task_handle
    except asyncio.CancelledError:
        logger.info("main: session cleanup task stopped")

    if owns_backends:
        await app.state.backends.close()
        logger.info("main: backends closed")


def create_app(backends: Backends | None = None, sessions: SessionStore | None = None) -> FastAPI:
    """
    Build the application.

    Tests pass their own Backends (usually MemoryTodoStore instances); they
    are used as-is and never closed by the app.
    """
    app = FastAPI(
        title="Pagekit",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.backends = backends
    app.state.sessions = sessions or SessionStore(settings.SESSION_TIMEOUT_SECONDS, max_sessions=settings.MAX_SESSIONS)

    # Register routes
    app.include_router(auth_routes.router)
    app.include_router(guis_routes.router)
    app.include_router(ws_routes.router)
    app.include_router(todo_routes.router)

    @app.get("/health")
    async def health():
        """Health check endpoint for uptime monitoring."""
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def index():
        """Links to every demo page."""
        links = ['<li><a href="/seven-guis">7GUIs</a></li>']
        links += [f'<li><a href="/{b}-todolist">{b.title()} Todo List</a></li>' for b in TODO_BACKENDS]
        return render_page("Pagekit", "<h1>Pagekit</h1>\n<ul>\n" + "\n".join(links) + "\n</ul>", script=None)

    return app


configure_logging(settings.LOG_LEVEL)
app = create_app()
