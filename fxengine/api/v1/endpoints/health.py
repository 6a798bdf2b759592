# fxengine/api/v1/endpoints/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from fxengine.schemas.health_schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request):
    state = request.app.state

    # Redis caído degrada el servicio pero no lo tumba: las tasas se piden igual.
    ping = getattr(state.cache, "ping", None)
    cache_status = "operational" if ping is None or ping() else "degraded"

    return HealthResponse(
        status="ok",
        provider=state.conversion_service.provider_name,
        cache=cache_status,
        time=datetime.now(timezone.utc).isoformat(),
    )
