import threading

import pytest

from apps.enricher.report import EnrichmentReport
from utils.errors import FailureReason
from utils.schemas import LookupOutcome, UserRecord


@pytest.fixture
def records() -> list[UserRecord]:
    return [
        UserRecord(id=1),
        UserRecord(id=2, external_link="x"),
        UserRecord(id=3),
    ]


def test_views_split_outcomes_by_status(records: list[UserRecord]) -> None:
    report = EnrichmentReport(records)
    report.add(LookupOutcome.failure(3, FailureReason.TIMEOUT))
    report.add(LookupOutcome.skipped(2))
    report.add(LookupOutcome.success(1, "L1"))

    assert report.updated() == {UserRecord(id=1, external_link="L1")}
    assert report.failed() == {3: FailureReason.TIMEOUT}
    assert report.skipped_count() == 1
    assert report.pending_ids() == []


def test_first_outcome_per_id_wins(records: list[UserRecord]) -> None:
    report = EnrichmentReport(records)

    assert report.add(LookupOutcome.success(1, "first")) is True
    assert report.add(LookupOutcome.failure(1, FailureReason.TIMEOUT)) is False

    assert report.updated() == {UserRecord(id=1, external_link="first")}
    assert report.failed() == {}


def test_unknown_id_is_rejected(records: list[UserRecord]) -> None:
    report = EnrichmentReport(records)

    with pytest.raises(ValueError):
        report.add(LookupOutcome.success(99, "nope"))


def test_duplicate_ids_in_batch_are_rejected() -> None:
    with pytest.raises(ValueError):
        EnrichmentReport([UserRecord(id=1), UserRecord(id=1)])


def test_merged_preserves_order_and_keeps_failed_records_unlinked(records: list[UserRecord]) -> None:
    report = EnrichmentReport(records)
    report.add(LookupOutcome.success(1, "L1"))
    report.add(LookupOutcome.skipped(2))
    report.add(LookupOutcome.failure(3, FailureReason.UNREACHABLE))

    assert report.merged() == [
        UserRecord(id=1, external_link="L1"),
        UserRecord(id=2, external_link="x"),
        UserRecord(id=3, external_link=""),
    ]


def test_pending_ids_lists_records_without_outcome(records: list[UserRecord]) -> None:
    report = EnrichmentReport(records)
    report.add(LookupOutcome.skipped(2))

    assert report.pending_ids() == [1, 3]


def test_summary_counts(records: list[UserRecord]) -> None:
    report = EnrichmentReport(records)
    report.add(LookupOutcome.success(1, "L1"))
    report.add(LookupOutcome.skipped(2))
    report.add(LookupOutcome.failure(3, FailureReason.BAD_RESPONSE))

    summary = report.summary()

    assert summary.total == 3
    assert summary.updated == 1
    assert summary.failed == {3: FailureReason.BAD_RESPONSE}
    assert summary.skipped == 1


def test_concurrent_adds_keep_one_outcome_per_id() -> None:
    batch = [UserRecord(id=i) for i in range(200)]
    report = EnrichmentReport(batch)
    stored: list[bool] = []
    stored_lock = threading.Lock()

    def writer(tag: str) -> None:
        for record in batch:
            result = report.add(LookupOutcome.success(record.id, f"{tag}-{record.id}"))
            with stored_lock:
                stored.append(result)

    threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert stored.count(True) == 200
    assert len(report.updated()) == 200
