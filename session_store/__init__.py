from .base import SessionStore
from .errors import SessionStoreConfigError, SessionStoreError
from .expiry import DEFAULT_LIFETIME_MS, compute_expiry, lifetime_hint
from .keys import normalize_key
from .logger import setup_logging
from .models import CookieData, SessionDoc, SessionPayload
from .reaper import DEFAULT_REAP_INTERVAL_MS, Reaper
from .store import MongoSessionStore

__all__ = [
    "SessionStore",
    "MongoSessionStore",
    "Reaper",
    "SessionPayload",
    "CookieData",
    "SessionDoc",
    "SessionStoreError",
    "SessionStoreConfigError",
    "normalize_key",
    "setup_logging",
    "compute_expiry",
    "lifetime_hint",
    "DEFAULT_LIFETIME_MS",
    "DEFAULT_REAP_INTERVAL_MS",
]
