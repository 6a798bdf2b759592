# fxengine/infra/providers/exchangerate_host.py
import logging
from typing import Optional
from urllib.parse import urlencode

import requests

from fxengine.domain.context import ConversionContext
from fxengine.domain.errors import ConversionError, ErrorKind
from fxengine.domain.money import apply_rate, normalize_currency
from fxengine.domain.ports import Cache
from fxengine.infra.providers.base import HttpClientConfig, HttpRateProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.exchangerate.host"
MISSING_ACCESS_KEY = "missing_access_key"


class ExchangerateHostProvider(HttpRateProvider):
    """
    Fuente "latest": GET /latest?base=FROM devuelve
    {"success": bool, "rates": {code: float}, "error": {"type", "info"}}.
    """

    name = "exchangerate.host"

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
        params = {"base": base}
        if self.api_key:
            params["access_key"] = self.api_key
        return f"{self.config.base_url.rstrip('/')}/latest?{urlencode(params)}"

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

        raw, from_cache = self.load_rates(base, self.build_url(base), ctx, secret=self.api_key)
        data = self.decode(raw)

        if not data.get("success"):
            logger.error(f"❌ Respuesta sin éxito de {self.name}: {data}")
            error = data.get("error")
            if isinstance(error, dict):
                if error.get("type") == MISSING_ACCESS_KEY:
                    raise ConversionError.missing_api_key(str(error.get("info") or ""))
                raise ConversionError(
                    ErrorKind.UNSUCCESSFUL,
                    "exchange response not successful",
                    info=f"{error.get('type', '')}: {error.get('info', '')}",
                )
            raise ConversionError(ErrorKind.UNSUCCESSFUL, "exchange response not successful")

        if not from_cache:
            self.write_cache(self.cache_key(base), raw)

        rate = self.pick_rate(data.get("rates"), target)

        result = apply_rate(amount_cents, rate)
        logger.debug(
            f"📈 Conversión calculada: centavos={amount_cents} tasa={rate} resultado={result}"
        )
        return result
