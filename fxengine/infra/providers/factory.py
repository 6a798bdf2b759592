# fxengine/infra/providers/factory.py
import logging
from typing import Optional

import requests

from fxengine.core.config import Settings
from fxengine.domain.ports import Cache, RateProvider
from fxengine.infra.providers.base import HttpClientConfig
from fxengine.infra.providers.bcb_ptax import BcbPtaxProvider
from fxengine.infra.providers.exchangerate_api import ExchangeRateApiProvider
from fxengine.infra.providers.exchangerate_host import ExchangerateHostProvider

logger = logging.getLogger(__name__)

EXCHANGERATE_HOST_NAMES = {"exchangerate.host"}
EXCHANGERATE_API_NAMES = {"exchangerate-api", "exchangerate-api.com", "exchange-rate-api"}
BCB_NAMES = {"bcb", "ptax", "bcb-ptax"}


def build_provider(
    settings: Settings,
    cache: Optional[Cache],
    session: Optional[requests.Session] = None,
) -> RateProvider:
    """Elige el proveedor por EXCHANGE_PROVIDER; nombres desconocidos usan exchangerate.host."""
    name = settings.EXCHANGE_PROVIDER.strip().lower()

    if name in EXCHANGERATE_API_NAMES:
        return ExchangeRateApiProvider(
            api_key=settings.EXCHANGE_API_KEY,
            cache=cache,
            config=HttpClientConfig(
                settings.EXCHANGERATE_API_BASE_URL, settings.EXCHANGE_HTTP_TIMEOUT_SECONDS
            ),
            session=session,
        )

    if name in BCB_NAMES:
        return BcbPtaxProvider(
            cache=cache,
            config=HttpClientConfig(settings.BCB_API_BASE_URL, settings.BCB_TIMEOUT_SECONDS),
            max_retries=settings.BCB_MAX_RETRIES,
            max_back_days=settings.BCB_MAX_BACK_DAYS,
            session=session,
        )

    if name not in EXCHANGERATE_HOST_NAMES:
        logger.warning(f"⚠️ EXCHANGE_PROVIDER={settings.EXCHANGE_PROVIDER!r} desconocido, se usa exchangerate.host")

    return ExchangerateHostProvider(
        api_key=settings.EXCHANGE_API_KEY,
        cache=cache,
        config=HttpClientConfig(
            settings.EXCHANGERATE_HOST_BASE_URL, settings.EXCHANGE_HTTP_TIMEOUT_SECONDS
        ),
        session=session,
    )
