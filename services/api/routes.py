"""
User API endpoints.

Listing users enriches missing external links on the way out and stops
outstanding lookups if the client disconnects; records whose
lookup failed are returned without a link and counted in the
X-Enrichment-Failed header. The request itself still succeeds.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from services.api.dependencies import get_user_service
from services.api.users import UserQueryService
from utils.schemas import UserRecord

logger = logging.getLogger(__name__)

router = APIRouter()


DISCONNECT_POLL_INTERVAL = 0.1


async def watch_disconnect(
    request: Request,
    cancel_event: asyncio.Event,
    interval: float = DISCONNECT_POLL_INTERVAL,
) -> None:
    """Set ``cancel_event`` once the client that sent ``request`` goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info(
                "Client disconnected, cancelling enrichment",
                extra={"path": request.url.path},
            )
            cancel_event.set()
            return
        await asyncio.sleep(interval)


@router.get("/users", response_model=list[UserRecord])
async def list_users(
    request: Request,
    response: Response,
    service: UserQueryService = Depends(get_user_service),
) -> list[UserRecord]:
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        listing = await service.list_users(cancel_event=cancel_event)
    finally:
        watcher.cancel()
        try:
            await watcher
        except asyncio.CancelledError:
            pass

    response.headers["X-Enrichment-Updated"] = str(listing.summary.updated)
    response.headers["X-Enrichment-Failed"] = str(len(listing.summary.failed))
    response.headers["X-Enrichment-Skipped"] = str(listing.summary.skipped)

    return listing.users


@router.get("/users/{user_id}", response_model=UserRecord)
async def get_user(
    user_id: int,
    service: UserQueryService = Depends(get_user_service),
) -> UserRecord:
    user = await service.find_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return user


@router.get("/health")
async def health(request: Request) -> dict[str, str]:
    settings = request.app.state.settings
    return {"status": "ok", "app": settings.APP_NAME, "version": settings.APP_VERSION}
