# fxengine/api/v1/router.py
from fastapi import APIRouter

from fxengine.api.v1.endpoints.convert import router as convert_router
from fxengine.api.v1.endpoints.health import router as health_router


api_router_v1 = APIRouter(prefix="/api/v1")

api_router_v1.include_router(health_router)
api_router_v1.include_router(convert_router)
