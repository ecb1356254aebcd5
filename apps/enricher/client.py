"""
External Link Lookup Client

Performs one GET per user id against the external link service and turns
every way that can go wrong into a tagged failure outcome. An empty body is a
failure too, so a missing link can never pass for a valid one.

The client makes no retries and runs no internal concurrency. Cancellation
of the awaiting task aborts the in-flight request; asyncio.CancelledError is
propagated to the caller, which records the affected record as cancelled.

Usage:
    async with HttpLinkLookupClient("https://links.example.com", timeout=5.0) as client:
        outcome = await client.fetch(42)
"""

import logging
from types import TracebackType
from typing import Optional, Protocol, runtime_checkable

import httpx

from utils.errors import FailureReason
from utils.schemas import LookupOutcome

logger = logging.getLogger(__name__)


@runtime_checkable
class LinkLookupClient(Protocol):
    """Fetches the external link for one user id."""

    async def fetch(self, user_id: int) -> LookupOutcome:
        ...


class HttpLinkLookupClient:
    """LinkLookupClient backed by an httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the lookup client.

        Args:
            base_url: Root URL of the link service; lookups go to {base_url}/users/{id}
            timeout: Per-request timeout in seconds
            client: Shared httpx client; one is created (and owned) when omitted
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def url_for(self, user_id: int) -> str:
        return f"{self.base_url}/users/{user_id}"

    async def fetch(self, user_id: int) -> LookupOutcome:
        """
        Fetch the external link for a user.

        Args:
            user_id: Non-negative user id

        Returns:
            LookupOutcome.success with the stripped response text, or
            LookupOutcome.failure with one of unreachable/bad_response/timeout
        """
        url = self.url_for(user_id)

        try:
            response = await self._client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            return self._failed(user_id, FailureReason.TIMEOUT, f"{type(e).__name__}: {e}")
        except httpx.TransportError as e:
            return self._failed(user_id, FailureReason.UNREACHABLE, f"{type(e).__name__}: {e}")
        except httpx.HTTPError as e:
            return self._failed(user_id, FailureReason.BAD_RESPONSE, f"{type(e).__name__}: {e}")

        if not response.is_success:
            return self._failed(user_id, FailureReason.BAD_RESPONSE, f"HTTP {response.status_code}")

        value = response.text.strip()
        if not value:
            return self._failed(user_id, FailureReason.BAD_RESPONSE, "empty response body")

        return LookupOutcome.success(user_id, value)

    def _failed(self, user_id: int, reason: FailureReason, detail: str) -> LookupOutcome:
        logger.debug(
            "Link lookup failed",
            extra={"user_id": user_id, "reason": reason.value, "detail": detail},
        )
        return LookupOutcome.failure(user_id, reason, detail)

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpLinkLookupClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
