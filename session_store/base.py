from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Union

from .models import SessionPayload

Payload = Union[SessionPayload, Mapping[str, Any]]


class SessionStore(ABC):
    """
    Operations a host session middleware expects from a store.

    ``get``/``touch`` report a missing or expired session as ``None``/``False``;
    errors are raised, never returned.
    """

    @abstractmethod
    async def get(self, sid: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, sid: str, payload: Payload) -> None:
        ...

    @abstractmethod
    async def destroy(self, sid: str) -> None:
        ...

    @abstractmethod
    async def touch(self, sid: str, payload: Payload) -> bool:
        ...

    @abstractmethod
    async def clear(self) -> int:
        ...
