from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConfigurationError

from .base import Payload, SessionStore
from .dal import SessionDAL
from .errors import SessionStoreConfigError
from .expiry import DEFAULT_LIFETIME_MS, compute_expiry, lifetime_hint, now_ms
from .keys import normalize_key
from .models import SessionPayload
from .reaper import DEFAULT_REAP_INTERVAL_MS, ReapCallback, Reaper, invoke_callback, noop_reap_callback
from .settings import Settings, settings as default_settings

log = logging.getLogger("session_store")

DEFAULT_COLLECTION = "sessions"


def _resolve_database(database: Any) -> AsyncIOMotorDatabase:
    # Only motor handles are usable: every DAL call is awaited, so a
    # synchronous pymongo database or client is refused here.
    if isinstance(database, AsyncIOMotorDatabase):
        return database
    if isinstance(database, AsyncIOMotorClient):
        try:
            name = database.get_default_database().name
        except ConfigurationError as e:
            raise SessionStoreConfigError(f"Invalid MongoDB reference: {e}") from e
        return database[name]
    kind = "None" if database is None else type(database).__name__
    raise SessionStoreConfigError(
        f"Invalid MongoDB reference: {kind} (expected AsyncIOMotorDatabase or AsyncIOMotorClient)"
    )


def _as_doc(payload: Payload) -> Dict[str, Any]:
    if isinstance(payload, SessionPayload):
        return payload.to_doc()
    return dict(payload)


async def _settle(calls: Iterable[Awaitable[bool]]) -> int:
    """
    Await every call, then raise the first failure (if any).

    Calls that succeeded are not undone. Returns how many reported a deletion.
    """
    results = await asyncio.gather(*calls, return_exceptions=True)
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        raise errors[0]
    return sum(1 for r in results if r is True)


class MongoSessionStore(SessionStore):
    """
    Session store over a MongoDB collection.

    Documents look like ``{_id, expires, session, type: "connect-session"}``
    where ``expires`` is in milliseconds since the epoch. Expired documents
    are dropped lazily on read and in bulk by :meth:`reap`.
    """

    def __init__(
        self,
        database: Any,
        *,
        collection: Any = DEFAULT_COLLECTION,
        default_lifetime_ms: int = DEFAULT_LIFETIME_MS,
        reap_interval_ms: float = DEFAULT_REAP_INTERVAL_MS,
        reap_callback: Optional[ReapCallback] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.db = _resolve_database(database)
        name = collection if isinstance(collection, str) else DEFAULT_COLLECTION
        self.collection = normalize_key(name)
        self.default_lifetime_ms = default_lifetime_ms
        self.reap_interval_ms = reap_interval_ms
        self.reap_callback: ReapCallback = reap_callback or noop_reap_callback
        self.clock = clock

        self.records = SessionDAL(self.db, self.collection)
        self._client: Optional[AsyncIOMotorClient] = None
        self._reaper: Optional[Reaper] = None

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None, **kwargs: Any) -> "MongoSessionStore":
        s = s or default_settings
        client = AsyncIOMotorClient(s.MONGO_URI)
        kwargs.setdefault("collection", s.COLLECTION)
        kwargs.setdefault("default_lifetime_ms", s.DEFAULT_LIFETIME_MS)
        kwargs.setdefault("reap_interval_ms", s.REAP_INTERVAL_MS)
        store = cls(client[s.MONGO_DB], **kwargs)
        store._client = client
        return store

    async def ensure_indexes(self) -> None:
        await self.records.ensure_indexes()

    # ----------------- Session contract -----------------

    async def get(self, sid: str) -> Optional[Dict[str, Any]]:
        key = normalize_key(sid)
        now = self.clock()
        doc = await self.records.read(key)
        if doc is None:
            return None
        if doc.is_expired(now):
            log.debug("session expired key=%s expires=%s now=%s", key, doc.expires, now)
            await self.destroy(sid)
            return None
        return doc.session

    async def set(self, sid: str, payload: Payload) -> None:
        key = normalize_key(sid)
        session = _as_doc(payload)
        expires = compute_expiry(self.clock(), lifetime_hint(session), self.default_lifetime_ms)
        await self.records.write(key, session, expires)

    async def destroy(self, sid: str) -> None:
        await self.records.remove(normalize_key(sid))

    async def touch(self, sid: str, payload: Payload) -> bool:
        """
        Renew an existing session's expiry.

        The stored payload is kept; only its ``cookie`` section is replaced by
        the one in ``payload``. Returns False (and creates nothing) when there
        is no live session.
        """
        key = normalize_key(sid)
        doc = await self.records.read(key)
        if doc is None:
            return False
        if doc.is_expired(self.clock()):
            await self.records.remove(key)
            return False

        touched = dict(doc.session)
        incoming = _as_doc(payload)
        if "cookie" in incoming:
            touched["cookie"] = incoming["cookie"]
        else:
            touched.pop("cookie", None)

        await self.set(sid, touched)
        return True

    async def clear(self) -> int:
        keys = await self.records.list_keys()
        removed = await _settle(self.records.remove(k) for k in keys)
        log.info("sessions cleared collection=%s removed=%d", self.collection, removed)
        return removed

    async def reap(self, callback: Optional[ReapCallback] = None) -> int:
        """
        Remove every expired session.

        Without ``callback`` the number removed is returned and a backend
        failure is raised. With ``callback`` the outcome is delivered once as
        ``callback(error, removed)`` and nothing is raised.
        """
        try:
            removed = await self._reap()
        except Exception as e:
            if callback is None:
                raise
            await invoke_callback(callback, e, 0)
            return 0
        if callback is not None:
            await invoke_callback(callback, None, removed)
        return removed

    async def _reap(self) -> int:
        expired = await self.records.list_expired(self.clock())
        if not expired:
            return 0
        # Each delete re-checks expiry against the live document.
        return await _settle(self.records.remove_expired(d.key, self.clock()) for d in expired)

    # ----------------- Extras -----------------

    async def length(self) -> int:
        return await self.records.count()

    async def all(self) -> Dict[str, Dict[str, Any]]:
        now = self.clock()
        return {d.key: d.session for d in await self.records.list_all() if not d.is_expired(now)}

    # ----------------- Lifecycle -----------------

    @property
    def reaper(self) -> Optional[Reaper]:
        return self._reaper

    def start_reaping(self) -> Reaper:
        if self._reaper is None:
            self._reaper = Reaper(self, interval_ms=self.reap_interval_ms, callback=self.reap_callback)
        return self._reaper.start()

    async def close(self) -> None:
        if self._reaper is not None:
            await self._reaper.stop()
            self._reaper = None
        if self._client is not None:
            self._client.close()
            self._client = None
