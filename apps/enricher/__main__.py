"""
Enricher Module Entry Point

Allows execution via: python -m apps.enricher
"""

import asyncio
import sys

from apps.enricher.job import main

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
