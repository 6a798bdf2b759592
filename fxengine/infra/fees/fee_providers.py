# fxengine/infra/fees/fee_providers.py
import logging
from typing import Optional

import requests

from fxengine.core.config import Settings
from fxengine.domain.errors import ConversionError, ErrorKind
from fxengine.domain.money import normalize_currency
from fxengine.domain.ports import FeeProvider
from fxengine.infra.providers.base import is_success

logger = logging.getLogger(__name__)

FEE_API_TIMEOUT = 5.0


class StaticFeeProvider(FeeProvider):
    """Porcentaje fijo configurado (EXCHANGE_FEE_PERCENT)."""

    def __init__(self, percent: float):
        self.percent = percent

    def fee_percent(self, from_currency: str, to_currency: str) -> float:
        return self.percent


class RemoteFeeProvider(FeeProvider):
    """
    Consulta un servicio externo: GET <url>?from=X&to=Y -> {"percent": 0.01}.
    Cualquier fallo se lanza; el llamador decide la política.
    """

    def __init__(
        self,
        url: str,
        timeout: float = FEE_API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session

    def fee_percent(self, from_currency: str, to_currency: str) -> float:
        if not self.url:
            return 0.0

        params = {
            "from": normalize_currency(from_currency),
            "to": normalize_currency(to_currency),
        }
        try:
            if self.session is not None:
                resp = self.session.get(self.url, params=params, timeout=self.timeout)
            else:
                resp = requests.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ Error consultando la API de comisiones: {e}")
            raise

        if not is_success(resp.status_code):
            logger.error(f"❌ API de comisiones respondió status={resp.status_code} body={resp.text}")
            raise ConversionError.upstream_status("fee api", resp.status_code, resp.text)

        try:
            percent = float(resp.json()["percent"])
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"❌ Respuesta de la API de comisiones ilegible: {e}")
            raise ConversionError(ErrorKind.DECODE, f"decode fee api response: {e}") from e

        logger.debug(f"Comisión obtenida: {percent}")
        return percent


def build_fee_provider(
    settings: Settings, session: Optional[requests.Session] = None
) -> Optional[FeeProvider]:
    if settings.FEE_API_URL:
        return RemoteFeeProvider(settings.FEE_API_URL, settings.FEE_API_TIMEOUT_SECONDS, session)
    if settings.EXCHANGE_FEE_PERCENT > 0:
        return StaticFeeProvider(settings.EXCHANGE_FEE_PERCENT)
    return None
