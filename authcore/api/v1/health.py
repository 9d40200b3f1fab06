"""Health check endpoint with database connectivity check."""

from fastapi import APIRouter, Request

from authcore.core.database import check_db_connected
from authcore.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
async def get_health(request: Request) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring.
    """
    connected = await check_db_connected(request.app.state.engine)

    return HealthResponse(
        status="ok",
        environment=request.app.state.settings.APP_ENV,
        database="connected" if connected else "disconnected",
    )
