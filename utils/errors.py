"""
Error Taxonomy

Exceptions raised across the backend, plus the reason codes used for
per-record lookup failures. Lookup failures are reported as values inside
an enrichment report, never raised.
"""

from enum import Enum


class FailureReason(str, Enum):
    """Why a single external lookup did not produce a value."""

    UNREACHABLE = "unreachable"
    BAD_RESPONSE = "bad_response"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class ConfigErrorReason(str, Enum):
    INVALID_CONCURRENCY_LIMIT = "invalid_concurrency_limit"
    INVALID_DEADLINE = "invalid_deadline"
    MISSING_CLIENT = "missing_client"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"


class UsersBackendError(Exception):
    """Base error for the users backend."""


class ConfigError(UsersBackendError):
    """Raised when an enrichment call is misconfigured or its batch is invalid.

    Always raised before any lookup is dispatched.
    """

    def __init__(self, reason: ConfigErrorReason, message: str) -> None:
        super().__init__(f"{reason.value}: {message}")
        self.reason = reason


class PersistenceFailure(UsersBackendError):
    """Raised when the persistence store fails to load or save records."""
