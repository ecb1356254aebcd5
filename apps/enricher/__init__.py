"""
Enricher App - External Link Enrichment

Responsibilities:
- Decide which user records still need an external link (EnrichmentPolicy)
- Fetch missing links from the external link service (LinkLookupClient)
- Run lookups for a batch under a fixed concurrency limit and a shared deadline
- Aggregate per-record outcomes into a report (updated / failed / skipped)

Outputs:
- EnrichmentReport: the caller persists exactly report.updated()

Usage:
    # One-shot batch over the users table
    python -m apps.enricher
"""
