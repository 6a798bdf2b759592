# fxengine/schemas/health_schemas.py
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    provider: str
    cache: str
    time: str
