from __future__ import annotations

import math
import time
from typing import Any, Mapping, Optional, Union

from .models import SessionPayload

DEFAULT_LIFETIME_MS = 21_600_000  # 6 hours

Number = Union[int, float]


def now_ms() -> int:
    return int(time.time() * 1000)


def _is_number(v: Any) -> bool:
    # inf and nan cannot become an int timestamp
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def lifetime_hint(payload: Union[SessionPayload, Mapping[str, Any], None]) -> Optional[Number]:
    """Return ``payload.cookie.maxAge`` when it is a number, else None."""
    if payload is None:
        return None
    if isinstance(payload, SessionPayload):
        cookie = payload.cookie.model_dump(by_alias=True) if payload.cookie else None
    else:
        cookie = payload.get("cookie")
    if not isinstance(cookie, Mapping):
        return None
    max_age = cookie.get("maxAge")
    return max_age if _is_number(max_age) else None


def compute_expiry(
    now: int,
    lifetime_ms: Optional[Number],
    default_ms: int = DEFAULT_LIFETIME_MS,
) -> int:
    # Negative lifetimes are not rejected: they produce an already-expired record.
    if _is_number(lifetime_ms):
        return int(now + lifetime_ms)
    return int(now + default_ms)
