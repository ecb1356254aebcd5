"""
Root test configuration.

Provides fake link lookup clients and an isolated SQLite database per test.
"""

import asyncio
from typing import Optional, Union

import pytest

from utils.config import Settings
from utils.db import SqliteUserRepository, init_schema
from utils.errors import FailureReason
from utils.schemas import LookupOutcome


class FakeLinkClient:
    """
    Scripted LinkLookupClient.

    ``responses`` maps a user id to either the link to return or the
    FailureReason to fail with. Unknown ids return ``L{id}``. Tracks calls
    and the peak number of concurrent fetches.
    """

    def __init__(
        self,
        responses: Optional[dict[int, Union[str, FailureReason]]] = None,
        delay: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.delay = delay
        self.calls: list[int] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, user_id: int) -> LookupOutcome:
        self.calls.append(user_id)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            # Always yield so concurrent workers overlap
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        response = self.responses.get(user_id, f"L{user_id}")
        if isinstance(response, FailureReason):
            return LookupOutcome.failure(user_id, response, "scripted failure")
        return LookupOutcome.success(user_id, response)


class HangingLinkClient:
    """LinkLookupClient whose fetches never complete until cancelled."""

    def __init__(self) -> None:
        self.started: list[int] = []
        self.cancelled: list[int] = []

    async def fetch(self, user_id: int) -> LookupOutcome:
        self.started.append(user_id)
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled.append(user_id)
            raise
        raise AssertionError("unreachable")


@pytest.fixture
def fake_client() -> FakeLinkClient:
    return FakeLinkClient()


@pytest.fixture
def db_path(tmp_path) -> str:
    path = str(tmp_path / "db" / "users.db")
    init_schema(path)
    return path


@pytest.fixture
def repository(db_path: str) -> SqliteUserRepository:
    return SqliteUserRepository(db_path)


@pytest.fixture
def test_settings(db_path: str) -> Settings:
    return Settings(
        SQLITE_PATH=db_path,
        LINK_SERVICE_BASE_URL="http://links.test",
        ENRICH_CONCURRENCY_LIMIT=2,
        ENRICH_DEADLINE_SECONDS=5.0,
        LOG_FORMAT="text",
        LOG_LEVEL="DEBUG",
    )
