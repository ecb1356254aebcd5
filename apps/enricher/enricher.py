"""
Bounded Enricher - Concurrent External Link Lookups

Enriches a batch of user records with at most K lookups in flight at once.

Features:
- Fixed-size asyncio worker pool pulling candidates from a shared queue
- Failure isolation: a failed lookup is recorded, never raised
- Shared batch deadline and optional external cancellation signal
- Every record ends up in the report exactly once (updated, failed or skipped)

Usage:
    from apps.enricher.client import HttpLinkLookupClient
    from apps.enricher.enricher import BoundedEnricher

    enricher = BoundedEnricher(client, concurrency_limit=10, deadline=30.0)
    report = await enricher.enrich(records)
    repository.save_updated(report.updated())
"""

import asyncio
import logging
import math
import time
from typing import Iterable, Optional

from apps.enricher.client import LinkLookupClient
from apps.enricher.policy import EnrichmentPolicy
from apps.enricher.report import EnrichmentReport
from utils.errors import ConfigError, ConfigErrorReason, FailureReason
from utils.schemas import LookupOutcome, LookupStatus, UserRecord

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY_LIMIT = 10


def _check_concurrency_limit(limit: int) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ConfigError(
            ConfigErrorReason.INVALID_CONCURRENCY_LIMIT,
            f"concurrency limit must be a positive integer, got {limit!r}",
        )


def _check_deadline(deadline: Optional[float]) -> None:
    if deadline is None:
        return
    if (
        isinstance(deadline, bool)
        or not isinstance(deadline, (int, float))
        or not math.isfinite(deadline)
        or deadline <= 0
    ):
        raise ConfigError(
            ConfigErrorReason.INVALID_DEADLINE,
            f"deadline must be a positive number of seconds, got {deadline!r}",
        )


class BoundedEnricher:
    """
    Orchestrates external link lookups for a batch of records.

    Workers only produce outcomes; the new link values are applied to copies
    of the records by the report once the batch is finished.
    """

    def __init__(
        self,
        client: LinkLookupClient,
        policy: Optional[EnrichmentPolicy] = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        deadline: Optional[float] = None,
    ) -> None:
        """
        Initialize the enricher.

        Args:
            client: Lookup client used for every fetch
            policy: Idempotence gate, defaults to EnrichmentPolicy()
            concurrency_limit: Default maximum number of lookups in flight
            deadline: Default batch deadline in seconds (None waits indefinitely)

        Raises:
            ConfigError: If the client is missing or a limit is invalid
        """
        if client is None:
            raise ConfigError(ConfigErrorReason.MISSING_CLIENT, "a lookup client is required")
        _check_concurrency_limit(concurrency_limit)
        _check_deadline(deadline)

        self.client = client
        self.policy = policy or EnrichmentPolicy()
        self.concurrency_limit = concurrency_limit
        self.deadline = deadline

    async def enrich(
        self,
        records: Iterable[UserRecord],
        concurrency_limit: Optional[int] = None,
        deadline: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> EnrichmentReport:
        """
        Enrich a batch of records.

        Args:
            records: Batch of records with unique ids
            concurrency_limit: Overrides the default limit for this call
            deadline: Overrides the default deadline (seconds) for this call
            cancel_event: When set, outstanding lookups are cancelled

        Returns:
            EnrichmentReport covering every record of the batch

        Raises:
            ConfigError: If the limit, deadline or batch is invalid; raised
                before any lookup starts
        """
        limit = self.concurrency_limit if concurrency_limit is None else concurrency_limit
        deadline = self.deadline if deadline is None else deadline
        _check_concurrency_limit(limit)
        _check_deadline(deadline)

        records = list(records)
        try:
            report = EnrichmentReport(records)
        except ValueError as e:
            raise ConfigError(ConfigErrorReason.DUPLICATE_IDENTIFIER, str(e)) from e

        start_time = time.monotonic()

        # Gate: already-enriched records never reach the client
        queue: asyncio.Queue[UserRecord] = asyncio.Queue()
        for record in records:
            if self.policy.needs_enrichment(record):
                queue.put_nowait(record)
            else:
                report.add(LookupOutcome.skipped(record.id))
                logger.debug("Skipping enriched user", extra={"user_id": record.id})

        candidates = queue.qsize()
        if candidates:
            worker_count = min(limit, candidates)
            logger.info(
                "Enrichment batch started",
                extra={
                    "batch_size": len(records),
                    "candidates": candidates,
                    "workers": worker_count,
                    "deadline": deadline,
                },
            )
            stop_reason = await self._run_workers(queue, report, worker_count, deadline, cancel_event)
            self._fail_pending(report, stop_reason, deadline)

        report.elapsed_seconds = time.monotonic() - start_time
        summary = report.summary()

        logger.info(
            "Enrichment batch complete: total=%d, updated=%d, failed=%d, skipped=%d, elapsed=%.3fs",
            summary.total, summary.updated, len(summary.failed), summary.skipped,
            summary.elapsed_seconds,
        )
        return report

    async def _run_workers(
        self,
        queue: "asyncio.Queue[UserRecord]",
        report: EnrichmentReport,
        worker_count: int,
        deadline: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> Optional[FailureReason]:
        """
        Run the worker pool until the queue drains, the deadline expires or
        cancellation is requested.

        Returns:
            None when every worker finished, otherwise the reason to record
            for records still without an outcome
        """
        workers = {
            asyncio.create_task(self._worker(queue, report), name=f"enricher-worker-{i}")
            for i in range(worker_count)
        }
        cancel_waiter = asyncio.create_task(cancel_event.wait()) if cancel_event else None

        loop = asyncio.get_running_loop()
        expires_at = None if deadline is None else loop.time() + deadline
        pending = set(workers)
        stop_reason: Optional[FailureReason] = None

        try:
            while pending:
                waitables = set(pending)
                if cancel_waiter is not None:
                    waitables.add(cancel_waiter)
                timeout = None if expires_at is None else max(0.0, expires_at - loop.time())

                done, _ = await asyncio.wait(
                    waitables, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                )

                if cancel_waiter is not None and cancel_waiter in done:
                    stop_reason = FailureReason.CANCELLED
                    break
                if not done:
                    stop_reason = FailureReason.TIMEOUT
                    break
                pending -= done

        finally:
            # Cancel in-flight lookups and wait for them to unwind
            for task in pending:
                task.cancel()
            if cancel_waiter is not None:
                cancel_waiter.cancel()
                pending.add(cancel_waiter)
            await asyncio.gather(*pending, return_exceptions=True)

        for task in workers:
            if task.done() and not task.cancelled() and task.exception() is not None:
                logger.error(
                    "Enrichment worker crashed",
                    extra={"worker": task.get_name()},
                    exc_info=task.exception(),
                )

        return stop_reason

    async def _worker(self, queue: "asyncio.Queue[UserRecord]", report: EnrichmentReport) -> None:
        while True:
            try:
                record = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            outcome = await self._lookup(record)
            report.add(outcome)

            if outcome.status is LookupStatus.FAILURE:
                logger.warning(
                    "External link lookup failed",
                    extra={
                        "user_id": record.id,
                        "reason": outcome.reason.value,
                        "detail": outcome.detail,
                    },
                )

    async def _lookup(self, record: UserRecord) -> LookupOutcome:
        try:
            outcome = await self.client.fetch(record.id)
        except Exception as e:
            logger.warning(
                "Lookup client raised instead of reporting a failure",
                extra={"user_id": record.id, "error": str(e)},
                exc_info=True,
            )
            return LookupOutcome.failure(
                record.id, FailureReason.BAD_RESPONSE, f"{type(e).__name__}: {e}"
            )

        if outcome.user_id != record.id or outcome.status is LookupStatus.SKIPPED:
            return LookupOutcome.failure(
                record.id,
                FailureReason.BAD_RESPONSE,
                f"unexpected outcome from client: {outcome.status.value} for {outcome.user_id}",
            )

        # A re-fetch that returns the stored link leaves the record untouched
        if outcome.is_success and outcome.value == record.external_link:
            return LookupOutcome.skipped(record.id)
        return outcome

    def _fail_pending(
        self,
        report: EnrichmentReport,
        stop_reason: Optional[FailureReason],
        deadline: Optional[float],
    ) -> None:
        pending = report.pending_ids()
        if not pending:
            return

        if stop_reason is FailureReason.TIMEOUT:
            detail = f"batch deadline of {deadline}s expired"
        elif stop_reason is FailureReason.CANCELLED:
            detail = "batch cancelled"
        else:
            # Only reachable if a worker died outside a lookup
            stop_reason = FailureReason.BAD_RESPONSE
            detail = "worker stopped before producing an outcome"

        logger.warning(
            "Enrichment stopped early",
            extra={"reason": stop_reason.value, "pending": len(pending)},
        )
        for user_id in pending:
            report.add(LookupOutcome.failure(user_id, stop_reason, detail))
