# fxengine/domain/services/conversion_service.py
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fxengine.domain.context import ConversionContext, background
from fxengine.domain.money import apply_fee, cents_to_units, normalize_currency
from fxengine.domain.ports import Cache, FeeProvider, RateProvider

logger = logging.getLogger(__name__)

FEE_POLICY_FAIL = "fail"
FEE_POLICY_ZERO = "zero"


class FeeLookupError(Exception):
    """La comisión no se pudo obtener y la política es abortar."""


@dataclass
class ConversionResult:
    from_currency: str
    to_currency: str
    amount_cents: int
    result_cents: int
    result: float
    fee_percent: float
    fee_amount_cents: int
    net_result_cents: int
    net_result: float
    provider: str
    fee_error: Optional[str] = None


def result_cache_key(from_currency: str, to_currency: str, amount_cents: int) -> str:
    # Centavos enteros en la clave para no duplicar "10.00" y "1000"
    return f"convert:{from_currency}:{to_currency}:{amount_cents}"


class ConversionService:
    def __init__(
        self,
        provider: RateProvider,
        cache: Optional[Cache] = None,
        fee_provider: Optional[FeeProvider] = None,
        result_ttl: timedelta = timedelta(minutes=5),
        fee_failure_policy: str = FEE_POLICY_FAIL,
        provider_name: Optional[str] = None,
    ):
        self.provider = provider
        self.cache = cache
        self.fee_provider = fee_provider
        self.result_ttl = result_ttl
        self.fee_failure_policy = fee_failure_policy
        self.provider_name = provider_name or getattr(provider, "name", type(provider).__name__)

    def convert(
        self,
        from_currency: str,
        to_currency: str,
        amount_cents: int,
        ctx: Optional[ConversionContext] = None,
    ) -> ConversionResult:
        """
        El cache de resultados guarda sólo los centavos del proveedor; la
        comisión se consulta en cada request y nunca se cachea.
        """
        if ctx is None:
            ctx = background()
        src = normalize_currency(from_currency)
        dst = normalize_currency(to_currency)
        key = result_cache_key(src, dst, amount_cents)

        result_cents = self._cached_result(key)
        if result_cents is None:
            result_cents = self.provider.convert(src, dst, amount_cents, ctx)
            # Un cero casi siempre es una llamada fallida al proveedor
            if result_cents == 0:
                logger.error(f"❌ Resultado cero para {src}->{dst} amount={amount_cents}, no se guarda en cache")
            else:
                self._store_result(key, result_cents)

        fee_pct, fee_error = self._fee_percent(src, dst)
        fee_cents, net_cents = apply_fee(result_cents, fee_pct)

        return ConversionResult(
            from_currency=src,
            to_currency=dst,
            amount_cents=amount_cents,
            result_cents=result_cents,
            result=cents_to_units(result_cents),
            fee_percent=fee_pct,
            fee_amount_cents=fee_cents,
            net_result_cents=net_cents,
            net_result=cents_to_units(net_cents),
            provider=self.provider_name,
            fee_error=fee_error,
        )

    def _fee_percent(self, src: str, dst: str):
        if self.fee_provider is None:
            return 0.0, None
        try:
            return self.fee_provider.fee_percent(src, dst), None
        except Exception as e:
            if self.fee_failure_policy == FEE_POLICY_ZERO:
                logger.warning(f"⚠️ Falló la consulta de comisión {src}->{dst}, se aplica 0%: {e}")
                return 0.0, str(e)
            logger.error(f"❌ Falló la consulta de comisión {src}->{dst}: {e}")
            raise FeeLookupError(str(e)) from e

    def _cached_result(self, key: str) -> Optional[int]:
        if self.cache is None:
            return None
        try:
            raw = self.cache.get(key)
        except Exception as e:
            logger.warning(f"⚠️ Error leyendo cache de resultados {key}: {e}")
            return None
        if not raw:
            return None
        try:
            result_cents = int(raw)
        except ValueError as e:
            logger.warning(f"⚠️ Resultado en cache ilegible {key}, se recalcula: {e}")
            return None
        logger.info(f"✅ Usando resultado en cache {key}")
        return result_cents

    def _store_result(self, key: str, result_cents: int) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, str(result_cents), self.result_ttl)
        except Exception as e:
            logger.warning(f"⚠️ Error guardando resultado en cache {key}: {e}")
