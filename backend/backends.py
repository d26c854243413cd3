"""
Todo backends, built once at startup.

The lifespan creates a Backends object from settings and puts it on
app.state. Routes reach it through the get_store dependency.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from backend.config import Settings
from backend.stores import FirebaseTodoStore, PostgresTodoStore, SupabaseTodoStore, TodoStore
from engine.kernel.types import TODO_BACKENDS

logger = logging.getLogger(__name__)


class Backends:
    """The configured todo stores, keyed by backend name."""

    def __init__(self, stores: dict[str, TodoStore] | None = None) -> None:
        self.stores: dict[str, TodoStore] = dict(stores or {})

    @classmethod
    async def from_settings(cls, settings: Settings) -> Backends:
        """Connect every backend whose settings are present."""
        stores: dict[str, TodoStore] = {}
        if settings.DATABASE_URL:
            stores["postgres"] = await PostgresTodoStore.connect(settings.DATABASE_URL, name="postgres")
        if settings.NEON_DSN:
            stores["neon"] = await PostgresTodoStore.connect(settings.NEON_DSN, name="neon")
        if settings.SUPABASE_URL and settings.SUPABASE_KEY:
            stores["supabase"] = SupabaseTodoStore.connect(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        if settings.FIREBASE_RTDB_URL:
            stores["firebase"] = FirebaseTodoStore(settings.FIREBASE_RTDB_URL, settings.FIREBASE_AUTH_TOKEN)

        missing = sorted(set(TODO_BACKENDS) - set(stores))
        logger.info("backends: configured=%s missing=%s", sorted(stores), missing)
        return cls(stores)

    def get(self, backend: str) -> TodoStore:
        """
        Return the store for a backend name.

        Raises:
            HTTPException: 404 for an unknown backend, 503 when it is not configured
        """
        if backend not in TODO_BACKENDS:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown backend '{backend}'.")
        store = self.stores.get(backend)
        if store is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"The {backend} todo list is not configured.",
            )
        return store

    async def close(self) -> None:
        for name, store in self.stores.items():
            try:
                await store.close()
            except Exception as e:
                logger.warning("backends: failed to close %s: %s", name, e)
        self.stores.clear()


def get_backends(request: Request) -> Backends:
    """FastAPI dependency: the app's Backends."""
    backends = getattr(request.app.state, "backends", None)
    if backends is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Backends not initialized.")
    return backends
