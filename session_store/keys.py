from __future__ import annotations

import re

# Characters that cannot appear in a stored document key.
_FORBIDDEN = re.compile(r"[.$#\[\]/]")


def normalize_key(raw: str) -> str:
    """
    Map a session id to a backend-safe key.

    Each of ``. $ # [ ] /`` becomes ``_``; every other character is kept
    in place, so the result has the same length as the input.
    """
    return _FORBIDDEN.sub("_", raw)
