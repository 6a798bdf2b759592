# fxengine/domain/ports.py
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional, Protocol

from fxengine.domain.context import ConversionContext


class Cache(Protocol):
    """Clave/valor con TTL. `get` devuelve "" cuando la clave no existe."""

    def get(self, key: str) -> str: ...

    def set(self, key: str, value: str, ttl: timedelta) -> None: ...


class RateProvider(ABC):
    """Convierte centavos de una moneda a otra consultando una fuente de tasas."""

    name: str

    @abstractmethod
    def convert(
        self,
        from_currency: str,
        to_currency: str,
        amount_cents: int,
        ctx: Optional[ConversionContext] = None,
    ) -> int:
        """Devuelve el monto convertido en centavos."""


class FeeProvider(ABC):
    @abstractmethod
    def fee_percent(self, from_currency: str, to_currency: str) -> float:
        """Porcentaje de comisión para el par (0.005 = 0,5%)."""
