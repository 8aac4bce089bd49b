from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable, Optional

from fastapi import FastAPI
from starlette.requests import Request

from .settings import Settings, settings as default_settings
from .store import MongoSessionStore

log = logging.getLogger("session_store.lifespan")

StoreFactory = Callable[[], MongoSessionStore]


def session_store_lifespan(
    factory: Optional[StoreFactory] = None,
    *,
    s: Optional[Settings] = None,
) -> Callable[[FastAPI], AsyncContextManager[None]]:
    """
    Build a FastAPI ``lifespan`` that owns a session store.

    On startup the store is created (from settings unless ``factory`` is
    given), its indexes are ensured, it is exposed as
    ``app.state.session_store`` and the reaper is started when enabled.
    On shutdown the reaper is stopped and the store closed.
    """
    s = s or default_settings
    build = factory or (lambda: MongoSessionStore.from_settings(s))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = build()
        log.info("startup begin collection=%s reap_enabled=%s", store.collection, s.REAP_ENABLED)
        try:
            await store.ensure_indexes()
            app.state.session_store = store
            if s.REAP_ENABLED:
                store.start_reaping()
            log.info("startup complete")
            yield
        finally:
            await store.close()
            log.info("shutdown complete")

    return lifespan


def get_session_store(request: Request) -> MongoSessionStore:
    return request.app.state.session_store
