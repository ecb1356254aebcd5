import logging

from fastapi import Request

from services.api.users import UserQueryService

logger = logging.getLogger(__name__)


def get_user_service(request: Request) -> UserQueryService:
    """
    Dependency that provides the UserQueryService.

    The service is built in the FastAPI lifespan event and stored in the
    app's state. This dependency retrieves it.
    """
    service = getattr(request.app.state, "user_service", None)
    if service is None:
        logger.error("UserQueryService not initialized in app state.")
        raise RuntimeError("UserQueryService not available.")
    return service
