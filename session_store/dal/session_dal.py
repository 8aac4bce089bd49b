from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ASCENDING

from ..models import DOC_TYPE, SessionDoc

log = logging.getLogger("session_store.dal")


def _to_session(d: Optional[Mapping[str, Any]]) -> Optional[SessionDoc]:
    # The collection may be shared: anything not shaped like a session is skipped.
    if not d or d.get("type") != DOC_TYPE:
        return None
    try:
        return SessionDoc.model_validate(d)
    except ValidationError as e:
        log.warning("skipping malformed session key=%s err=%s", d.get("_id"), e)
        return None


class SessionDAL:
    """
    Point and query access to the sessions collection.

    Every call is a single Mongo operation; driver errors propagate to the
    caller unchanged and nothing is retried here.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection: str):
        self.col = db[collection]

    async def ensure_indexes(self) -> None:
        await self.col.create_index([("expires", ASCENDING)])

    async def read(self, key: str) -> Optional[SessionDoc]:
        return _to_session(await self.col.find_one({"_id": key}))

    async def write(self, key: str, session: Dict[str, Any], expires: int) -> None:
        doc = {
            "expires": expires,
            "session": session,
            "type": DOC_TYPE,
        }
        await self.col.replace_one({"_id": key}, doc, upsert=True)

    async def remove(self, key: str) -> bool:
        r = await self.col.delete_one({"_id": key})
        return r.deleted_count == 1

    async def remove_expired(self, key: str, now: int) -> bool:
        """
        Delete ``key`` only if it is still expired as of ``now``.

        The filter is evaluated by the server against the live document, so a
        record refreshed after it was listed survives.
        """
        r = await self.col.delete_one({"_id": key, "type": DOC_TYPE, "expires": {"$lt": now}})
        return r.deleted_count == 1

    async def list_keys(self) -> List[Any]:
        """Every ``_id`` in the collection, sessions or not."""
        cur = self.col.find({}, {"_id": 1})
        return [d["_id"] async for d in cur]

    async def list_all(self) -> List[SessionDoc]:
        cur = self.col.find({"type": DOC_TYPE})
        out = []
        async for d in cur:
            doc = _to_session(d)
            if doc is not None:
                out.append(doc)
        return out

    async def list_expired(self, now: int) -> List[SessionDoc]:
        cur = self.col.find({"type": DOC_TYPE, "expires": {"$lt": now}}).sort("expires", ASCENDING)
        out = []
        async for d in cur:
            doc = _to_session(d)
            if doc is not None:
                out.append(doc)
        return out

    async def count(self) -> int:
        return await self.col.count_documents({"type": DOC_TYPE})
