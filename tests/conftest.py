from __future__ import annotations

import uuid

import pytest
from mongomock_motor import AsyncMongoMockClient

from session_store import MongoSessionStore

T0 = 1_700_000_000_000


class FakeClock:
    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def db():
    return AsyncMongoMockClient()[f"test_{uuid.uuid4().hex}"]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(db, clock) -> MongoSessionStore:
    return MongoSessionStore(db, clock=clock)
