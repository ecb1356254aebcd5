"""
Enrichment Job - One-Shot Batch Execution

Runs a single enrichment batch over the users table: load, enrich, persist
the updated subset, log the summary and exit. There is no scheduling and no
retry across batches.

Usage:
    python -m apps.enricher
"""

import logging

from apps.enricher.client import HttpLinkLookupClient
from apps.enricher.enricher import BoundedEnricher
from apps.enricher.policy import EnrichmentPolicy
from services.api.users import UserQueryService
from utils.config import Settings, settings as default_settings
from utils.db import SqliteUserRepository, init_schema
from utils.errors import ConfigError, PersistenceFailure
from utils.logging import setup_logging
from utils.schemas import EnrichmentSummary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PERSISTENCE_ERROR = 1
EXIT_CONFIG_ERROR = 2


async def run_enrichment(settings: Settings) -> EnrichmentSummary:
    """
    Enrich every user missing an external link and persist the results.

    Args:
        settings: Application settings

    Returns:
        Summary of the batch

    Raises:
        ConfigError: If the enrichment configuration is invalid
        PersistenceFailure: If loading or saving users fails
    """
    init_schema(settings.SQLITE_PATH)
    repository = SqliteUserRepository(settings.SQLITE_PATH)

    async with HttpLinkLookupClient(
        settings.LINK_SERVICE_BASE_URL, timeout=settings.LINK_SERVICE_TIMEOUT
    ) as client:
        enricher = BoundedEnricher(
            client,
            policy=EnrichmentPolicy(refetch_existing=settings.ENRICH_REFETCH_EXISTING),
            concurrency_limit=settings.ENRICH_CONCURRENCY_LIMIT,
            deadline=settings.ENRICH_DEADLINE_SECONDS,
        )
        listing = await UserQueryService(repository, enricher).list_users()

    return listing.summary


async def main(settings: Settings = default_settings) -> int:
    """Entry point for the one-shot job. Returns the process exit code."""
    setup_logging(level=settings.LOG_LEVEL, format_type=settings.LOG_FORMAT)

    try:
        summary = await run_enrichment(settings)
    except ConfigError as e:
        logger.error("Invalid enrichment configuration", extra={"error": str(e)})
        return EXIT_CONFIG_ERROR
    except PersistenceFailure as e:
        logger.error("Enrichment job failed", extra={"error": str(e)}, exc_info=True)
        return EXIT_PERSISTENCE_ERROR

    logger.info(
        "Enrichment job finished",
        extra={
            "total": summary.total,
            "updated": summary.updated,
            "failed": len(summary.failed),
            "skipped": summary.skipped,
        },
    )
    return EXIT_OK
