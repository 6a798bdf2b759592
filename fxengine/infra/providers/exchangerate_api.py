# fxengine/infra/providers/exchangerate_api.py
import logging
from typing import Optional

import requests

from fxengine.domain.context import ConversionContext
from fxengine.domain.errors import ConversionError
from fxengine.domain.money import apply_rate, normalize_currency
from fxengine.domain.ports import Cache
from fxengine.infra.providers.base import HttpClientConfig, HttpRateProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://v6.exchangerate-api.com/v6"


class ExchangeRateApiProvider(HttpRateProvider):
    """
    API comercial con clave en la ruta: GET /{key}/latest/{FROM}.
    Responde {"result": "success", "conversion_rates": {...}}; una clave
    inválida llega como result != "success", no como objeto de error.
    """

    name = "exchangerate-api"

    def __init__(
        self,
        api_key: str = "",
        cache: Optional[Cache] = None,
        config: Optional[HttpClientConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(config or HttpClientConfig(DEFAULT_BASE_URL), cache, session)
        self.api_key = api_key

    def build_url(self, base: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{self.api_key}/latest/{base}"

    def convert(
        self,
        from_currency: str,
        to_currency: str,
        amount_cents: int,
        ctx: Optional[ConversionContext] = None,
    ) -> int:
        base = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        if base == target:
            return amount_cents

        if not self.api_key:
            raise ConversionError.missing_api_key("api key not provided for exchangerate-api")

        raw, from_cache = self.load_rates(base, self.build_url(base), ctx, secret=self.api_key)
        data = self.decode(raw)

        result_field = data.get("result")
        if result_field != "success":
            logger.error(f"❌ Respuesta sin éxito de {self.name}: result={result_field}")
            info = "upstream returned non-success result"
            if data.get("error-type"):
                info += f" ({data['error-type']})"
            raise ConversionError.missing_api_key(info)

        if not from_cache:
            self.write_cache(self.cache_key(base), raw)

        rate = self.pick_rate(data.get("conversion_rates"), target)
        result = apply_rate(amount_cents, rate)
        logger.debug(
            f"📈 Conversión calculada: centavos={amount_cents} tasa={rate} resultado={result}"
        )
        return result
