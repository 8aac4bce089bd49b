from __future__ import annotations


class SessionStoreError(Exception):
    """Base class for errors raised by the session store itself.

    Backend failures are not wrapped: driver errors (``PyMongoError``)
    reach the caller as raised.
    """


class SessionStoreConfigError(SessionStoreError, ValueError):
    """The store cannot be built from the given arguments."""
