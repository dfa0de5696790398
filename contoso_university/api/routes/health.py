from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from contoso_university.schemas.common import MessageResponse

router = APIRouter(prefix="/health", tags=["Health"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=MessageResponse,
    summary="Health Check",
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# PUBLIC_INTERFACE
@router.get(
    "/db",
    response_model=MessageResponse,
    summary="Database Health Check",
    description="Runs SELECT 1 against the school database.",
    responses={503: {"model": MessageResponse}},
)
async def database_health(request: Request):
    """
    Readiness check for the database connection.

    Returns:
        MessageResponse with 200 when the database answers, 503 otherwise.
    """
    services = request.app.state.services
    if await services.db.can_connect():
        return MessageResponse(message="Healthy")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=MessageResponse(message="Unhealthy").model_dump(),
    )
