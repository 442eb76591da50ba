import time
from fastapi import APIRouter, Request
from pydantic import BaseModel
from userhub.modules.users.domain.user import utcnow, format_timestamp

router = APIRouter(tags=["System"])


class HealthResponse(BaseModel):
    success: bool = True
    status: str
    timestamp: str
    version: str
    uptime: float  # seconds since the app was built


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """
    Liveness probe. Always succeeds while the process is serving.
    """
    state = request.app.state
    return HealthResponse(
        status="healthy",
        timestamp=format_timestamp(utcnow()),
        version=state.settings.api_version,
        uptime=round(time.monotonic() - state.started_at, 3)
    )
