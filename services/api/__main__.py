"""
API Module Entry Point

Allows execution via: python -m services.api
"""

import uvicorn

from utils.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "services.api.app:create_app",
        factory=True,
        host=settings.API_HOST,
        port=settings.API_PORT,
        workers=settings.API_WORKERS,
    )
