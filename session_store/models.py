from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DOC_TYPE = "connect-session"


class CookieData(BaseModel):
    """
    Cookie attributes carried inside a session payload.

    Only ``maxAge`` (milliseconds) is read by the store; any other attribute
    is kept untouched.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    # Left untyped: a non-numeric maxAge is stored as-is and ignored for expiry.
    max_age: Optional[Any] = Field(default=None, alias="maxAge")


class SessionPayload(BaseModel):
    """
    Opaque session data: arbitrary keys plus an optional ``cookie`` section.
    """
    model_config = ConfigDict(extra="allow")

    cookie: Optional[CookieData] = None

    def to_doc(self) -> Dict[str, Any]:
        # exclude_unset keeps the stored shape identical to what the caller sent
        return self.model_dump(by_alias=True, exclude_unset=True)


class SessionDoc(BaseModel):
    """
    Stored in MongoDB, one document per normalized session key.
    """
    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(alias="_id")
    expires: int                       # ms since epoch
    session: Dict[str, Any] = Field(default_factory=dict)
    type: str = DOC_TYPE

    def is_expired(self, now: int) -> bool:
        return self.expires < now
