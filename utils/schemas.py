"""
Pydantic Schemas - Data Validation Models

Defines the Pydantic schemas shared by the enrichment core and the API:
- User records as stored and served
- Per-record lookup outcomes
- Enrichment summaries returned alongside a batch

Usage:
    from utils.schemas import LookupOutcome, UserRecord

    user = UserRecord(id=1)
    outcome = LookupOutcome.success(user.id, "https://links.example.com/u/1")
    enriched = user.model_copy(update={"external_link": outcome.value})
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.errors import FailureReason


class UserRecord(BaseModel):
    """Stored user record.

    Records are immutable values: enrichment produces a new record through
    ``model_copy`` instead of writing to the instance it was given.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, description="User ID")
    external_link: str = Field(default="", description="Link fetched from the external service")

    @property
    def has_external_link(self) -> bool:
        return bool(self.external_link.strip())


class LookupStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class LookupOutcome(BaseModel):
    """Result of processing one record in a batch.

    Exactly one of three shapes:
    - success: ``value`` holds a non-empty link
    - failure: ``reason`` holds a FailureReason, ``detail`` optionally explains it
    - skipped: the record already had a link and no lookup was made
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    status: LookupStatus
    value: Optional[str] = None
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, user_id: int, value: str) -> "LookupOutcome":
        if not value:
            raise ValueError("successful lookup requires a non-empty value")
        return cls(user_id=user_id, status=LookupStatus.SUCCESS, value=value)

    @classmethod
    def failure(
        cls, user_id: int, reason: FailureReason, detail: Optional[str] = None
    ) -> "LookupOutcome":
        return cls(user_id=user_id, status=LookupStatus.FAILURE, reason=reason, detail=detail)

    @classmethod
    def skipped(cls, user_id: int) -> "LookupOutcome":
        return cls(user_id=user_id, status=LookupStatus.SKIPPED)

    @property
    def is_success(self) -> bool:
        return self.status is LookupStatus.SUCCESS


class EnrichmentSummary(BaseModel):
    """Serializable sidecar describing the outcome of one enrichment batch."""

    total: int = Field(..., ge=0, description="Records in the batch")
    updated: int = Field(..., ge=0, description="Records that received a new link")
    failed: dict[int, FailureReason] = Field(default_factory=dict, description="Failed ids and reasons")
    skipped: int = Field(..., ge=0, description="Records that already had a link")
    elapsed_seconds: float = Field(default=0.0, ge=0, description="Wall time of the batch")
