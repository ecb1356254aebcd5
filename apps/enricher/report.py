"""
Enrichment Report - Per-Batch Outcome Aggregation

Collects LookupOutcome values as workers complete (in any order) and exposes
the three views the caller needs: records to persist, failures with reasons,
and how many records were skipped.

Writes are serialized with a lock. Only the first outcome recorded for an
id counts; later ones are ignored.
"""

import logging
import threading
from typing import Iterable

from utils.errors import FailureReason
from utils.schemas import EnrichmentSummary, LookupOutcome, LookupStatus, UserRecord

logger = logging.getLogger(__name__)


class EnrichmentReport:
    """Outcome aggregator for one batch of user records."""

    def __init__(self, records: Iterable[UserRecord]) -> None:
        """
        Initialize an empty report for a batch.

        Args:
            records: The batch being enriched; ids must be unique
        """
        self._records: dict[int, UserRecord] = {}
        for record in records:
            if record.id in self._records:
                raise ValueError(f"duplicate user id in batch: {record.id}")
            self._records[record.id] = record

        self._outcomes: dict[int, LookupOutcome] = {}
        self._lock = threading.Lock()
        self.elapsed_seconds = 0.0

    def __len__(self) -> int:
        return len(self._records)

    def add(self, outcome: LookupOutcome) -> bool:
        """
        Record an outcome for one user.

        Args:
            outcome: Outcome produced for a record of this batch

        Returns:
            True if stored, False if the id already had an outcome

        Raises:
            ValueError: If the id is not part of the batch
        """
        if outcome.user_id not in self._records:
            raise ValueError(f"outcome for unknown user id: {outcome.user_id}")

        with self._lock:
            if outcome.user_id in self._outcomes:
                logger.debug(
                    "Ignoring duplicate outcome",
                    extra={"user_id": outcome.user_id, "status": outcome.status.value},
                )
                return False
            self._outcomes[outcome.user_id] = outcome
            return True

    def outcomes(self) -> dict[int, LookupOutcome]:
        with self._lock:
            return dict(self._outcomes)

    def pending_ids(self) -> list[int]:
        """Ids of the batch that have no outcome yet, in input order."""
        with self._lock:
            return [user_id for user_id in self._records if user_id not in self._outcomes]

    def updated(self) -> set[UserRecord]:
        """Records that received a new link, with the link applied."""
        return {
            self._records[user_id].model_copy(update={"external_link": outcome.value})
            for user_id, outcome in self.outcomes().items()
            if outcome.is_success
        }

    def failed(self) -> dict[int, FailureReason]:
        return {
            user_id: outcome.reason
            for user_id, outcome in self.outcomes().items()
            if outcome.status is LookupStatus.FAILURE
        }

    def skipped_count(self) -> int:
        return sum(
            1 for outcome in self.outcomes().values() if outcome.status is LookupStatus.SKIPPED
        )

    def merged(self) -> list[UserRecord]:
        """The whole batch in input order, with successful links applied."""
        outcomes = self.outcomes()
        merged = []
        for user_id, record in self._records.items():
            outcome = outcomes.get(user_id)
            if outcome is not None and outcome.is_success:
                record = record.model_copy(update={"external_link": outcome.value})
            merged.append(record)
        return merged

    def summary(self) -> EnrichmentSummary:
        outcomes = self.outcomes()
        return EnrichmentSummary(
            total=len(self._records),
            updated=sum(1 for o in outcomes.values() if o.is_success),
            failed=self.failed(),
            skipped=self.skipped_count(),
            elapsed_seconds=self.elapsed_seconds,
        )
