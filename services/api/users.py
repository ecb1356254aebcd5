"""
User Query Service

Boundary-facing service behind the /users endpoints. Loads users from the
repository, enriches missing external links, and persists exactly the
records whose link changed. Lookup failures never fail the request; they are
reported through the summary returned with the users.
"""

import asyncio
import logging
from typing import NamedTuple, Optional

from apps.enricher.enricher import BoundedEnricher
from utils.db import UserRepository
from utils.schemas import EnrichmentSummary, UserRecord

logger = logging.getLogger(__name__)


class UserListing(NamedTuple):
    users: list[UserRecord]
    summary: EnrichmentSummary


class UserQueryService:
    """Loads, enriches and persists user records for the API."""

    def __init__(self, repository: UserRepository, enricher: BoundedEnricher) -> None:
        self.repository = repository
        self.enricher = enricher

    async def list_users(self, cancel_event: Optional[asyncio.Event] = None) -> UserListing:
        """
        Return every user with best-effort external links.

        Args:
            cancel_event: When set, outstanding lookups are cancelled and the
                affected users are returned without a new link

        Returns:
            UserListing with the full batch (input order) and the enrichment summary

        Raises:
            ConfigError: If the enricher rejects the batch
            PersistenceFailure: If loading or saving users fails
        """
        users = self.repository.load_batch()
        report = await self.enricher.enrich(users, cancel_event=cancel_event)

        updated = report.updated()
        if updated:
            self.repository.save_updated(sorted(updated, key=lambda user: user.id))

        summary = report.summary()
        if summary.failed:
            logger.warning(
                "Users listed with partial enrichment",
                extra={"failed": len(summary.failed), "total": summary.total},
            )

        return UserListing(users=report.merged(), summary=summary)

    async def find_user(self, user_id: int) -> Optional[UserRecord]:
        """Return a single user as stored, or None."""
        return self.repository.find(user_id)
