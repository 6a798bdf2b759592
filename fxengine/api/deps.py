# fxengine/api/deps.py
from fastapi import Request

from fxengine.domain.services.conversion_service import ConversionService


def get_conversion_service(request: Request) -> ConversionService:
    return request.app.state.conversion_service
