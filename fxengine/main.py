# fxengine/main.py
import logging
import time
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from fxengine.api.v1.router import api_router_v1
from fxengine.core.config import Settings, get_settings
from fxengine.core.logging import setup_logging
from fxengine.core.rate_limit import limiter, rate_limit_exceeded_handler, set_rate_limit
from fxengine.domain.ports import Cache, FeeProvider, RateProvider
from fxengine.domain.services.conversion_service import ConversionService
from fxengine.infra.cache.redis_cache import RedisCache
from fxengine.infra.fees.fee_providers import build_fee_provider
from fxengine.infra.providers.factory import build_provider

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("fxengine.access")


def create_app(
    settings: Optional[Settings] = None,
    cache: Optional[Cache] = None,
    provider: Optional[RateProvider] = None,
    fee_provider: Optional[FeeProvider] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    if cache is None:
        if "@" not in settings.REDIS_URL and not settings.REDIS_PASSWORD:
            logger.warning(
                f"⚠️ REDIS_URL configurado ({settings.REDIS_URL}) pero REDIS_PASSWORD está vacío. "
                "Si Redis requiere autenticación, defina REDIS_PASSWORD."
            )
        cache = RedisCache.from_settings(settings)

    provider = provider or build_provider(settings, cache)
    if fee_provider is None:
        fee_provider = build_fee_provider(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
    )

    app.state.settings = settings
    app.state.cache = cache
    app.state.conversion_service = ConversionService(
        provider=provider,
        cache=cache,
        fee_provider=fee_provider,
        result_ttl=timedelta(seconds=settings.CACHE_TTL_SECONDS),
        fee_failure_policy=settings.FEE_FAILURE_POLICY,
    )

    # Rate limiting
    set_rate_limit(settings.RATE_LIMIT)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        access_logger.info(
            f"access method={request.method} path={request.url.path} "
            f"status={response.status_code} duration={duration:.4f} "
            f"size={response.headers.get('content-length', 0)}"
        )
        return response

    # Routers
    app.include_router(api_router_v1)

    @app.get("/")
    async def root():
        return {"service": settings.PROJECT_NAME, "status": "ok"}

    logger.info(
        f"🚀 {settings.PROJECT_NAME} iniciada (proveedor={app.state.conversion_service.provider_name})"
    )
    return app


app = create_app()
