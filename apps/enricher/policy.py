"""Decides which records need an external link lookup."""

from utils.schemas import UserRecord


class EnrichmentPolicy:
    """
    Idempotence gate for enrichment.

    A record is a candidate only while its external link is absent. With
    ``refetch_existing`` enabled every record is a candidate, which lets an
    operator refresh links that are already stored.
    """

    def __init__(self, refetch_existing: bool = False) -> None:
        self.refetch_existing = refetch_existing

    def needs_enrichment(self, record: UserRecord) -> bool:
        if self.refetch_existing:
            return True
        return not record.has_external_link
