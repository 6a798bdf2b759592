# fxengine/infra/providers/base.py
import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

import requests

from fxengine.domain.context import ConversionContext, background
from fxengine.domain.errors import ConversionError, ErrorKind
from fxengine.domain.ports import Cache, RateProvider

logger = logging.getLogger(__name__)

# TTL fijo del cuerpo crudo de tasas, independiente del cache de resultados.
RAW_RATES_TTL = timedelta(minutes=20)


@dataclass(frozen=True)
class HttpClientConfig:
    base_url: str
    timeout: float = 10.0


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def mask_secret(text: str, secret: str) -> str:
    if not secret:
        return text
    return text.replace(secret, "***")


class HttpRateProvider(RateProvider):
    """
    Base de los proveedores HTTP: cada instancia es dueña de su
    configuración (base URL, timeout). Sin sesión inyectada cada llamada
    usa `requests.get`.
    """

    name = "http"

    def __init__(
        self,
        config: HttpClientConfig,
        cache: Optional[Cache] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.cache = cache
        self.session = session

    def cache_key(self, currency: str) -> str:
        return f"rates:{self.name}:{currency}"

    # -----------------------------
    # Cache
    # -----------------------------
    def read_cache(self, key: str) -> str:
        if self.cache is None:
            return ""
        try:
            return self.cache.get(key) or ""
        except Exception as e:
            # Un cache caído no debe impedir consultar la fuente
            logger.warning(f"⚠️ Error leyendo cache {key}, se consulta la fuente: {e}")
            return ""

    def write_cache(self, key: str, raw: str, ttl: timedelta = RAW_RATES_TTL) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, raw, ttl)
        except Exception as e:
            logger.warning(f"⚠️ Error guardando en cache {key}: {e}")

    # -----------------------------
    # HTTP
    # -----------------------------
    def get(
        self,
        url: str,
        ctx: Optional[ConversionContext] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        if ctx is None:
            ctx = background()
        ctx.check()
        timeout = ctx.timeout_for(timeout if timeout is not None else self.config.timeout)
        if self.session is not None:
            return self.session.get(url, timeout=timeout)
        return requests.get(url, timeout=timeout)

    def load_rates(
        self,
        currency: str,
        url: str,
        ctx: Optional[ConversionContext] = None,
        secret: str = "",
    ) -> Tuple[str, bool]:
        """
        Devuelve (cuerpo crudo, vino_del_cache). El llamador decide si el
        cuerpo es válido antes de guardarlo con `write_cache`.
        """
        cached = self.read_cache(self.cache_key(currency))
        if cached:
            logger.info(f"✅ Usando tasas en cache para base={currency}")
            return cached, True

        safe_url = mask_secret(url, secret)
        logger.info(f"🔄 Consultando tasas en {self.name}: {safe_url}")
        resp = self.get(url, ctx)
        if not is_success(resp.status_code):
            logger.error(
                f"❌ {self.name} respondió status={resp.status_code} body={resp.text}"
            )
            raise ConversionError.upstream_status(self.name, resp.status_code, resp.text)

        raw = resp.text
        logger.debug(f"Respuesta cruda de {safe_url}: {raw}")
        return raw, False

    # -----------------------------
    # Parsing
    # -----------------------------
    def decode(self, raw: str) -> Dict[str, Any]:
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error(f"❌ Respuesta de {self.name} ilegible: {e}")
            raise ConversionError(
                ErrorKind.DECODE, f"decode {self.name} response: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConversionError(
                ErrorKind.DECODE, f"decode {self.name} response: expected a JSON object"
            )
        return data

    def pick_rate(self, rates: Any, currency: str) -> float:
        if not isinstance(rates, dict) or currency not in rates:
            logger.error(f"❌ Moneda {currency} no encontrada en las tasas")
            raise ConversionError.currency_not_found(currency)
        try:
            return float(rates[currency])
        except (TypeError, ValueError) as e:
            raise ConversionError(
                ErrorKind.DECODE, f"invalid rate for {currency}: {rates[currency]!r}"
            ) from e
