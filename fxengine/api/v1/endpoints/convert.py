# fxengine/api/v1/endpoints/convert.py
import logging
from typing import Optional

import requests
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from fxengine.api.deps import get_conversion_service
from fxengine.core.rate_limit import current_rate_limit, limiter
from fxengine.domain.context import ConversionContext
from fxengine.domain.errors import ConversionError, ErrorKind
from fxengine.domain.money import parse_amount
from fxengine.domain.services.conversion_service import ConversionService, FeeLookupError
from fxengine.schemas.convert_schemas import ConversionResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["convert"])


@router.get("/convert", response_model=ConversionResponse)
@limiter.limit(current_rate_limit)
def convertir(
    request: Request,
    from_currency: Optional[str] = Query(None, alias="from"),
    to_currency: Optional[str] = Query(None, alias="to"),
    amount: Optional[str] = Query(None),
    service: ConversionService = Depends(get_conversion_service),
):
    if not from_currency or not to_currency or not amount:
        raise HTTPException(status_code=400, detail="missing parameters")

    try:
        amount_cents = parse_amount(amount)
    except (ValueError, OverflowError):
        raise HTTPException(status_code=400, detail="invalid amount")

    ctx = ConversionContext(timeout=request.app.state.settings.REQUEST_TIMEOUT_SECONDS)
    try:
        result = service.convert(from_currency, to_currency, amount_cents, ctx)
    except ConversionError as e:
        if e.is_missing_api_key:
            logger.error(f"❌ El proveedor requiere API key: {e}")
            raise HTTPException(
                status_code=502,
                detail="exchange provider requires an API key. Set EXCHANGE_API_KEY.",
            )
        if e.kind is ErrorKind.CANCELLED:
            raise HTTPException(status_code=504, detail=f"provider error: {e}")
        if e.kind is ErrorKind.CURRENCY_NOT_FOUND:
            raise HTTPException(status_code=422, detail=str(e))
        logger.error(f"❌ Error del proveedor: {e}")
        raise HTTPException(status_code=500, detail=f"provider error: {e}")
    except FeeLookupError as e:
        raise HTTPException(status_code=502, detail=f"fee lookup failed: {e}")
    except requests.RequestException as e:
        logger.error(f"❌ Error del proveedor: {e}")
        raise HTTPException(status_code=500, detail=f"provider error: {e}")

    return ConversionResponse.from_result(result)
