# fxengine/domain/context.py
import threading
import time
from typing import Optional

from fxengine.domain.errors import ConversionError, ErrorKind


class ConversionContext:
    """
    Plazo y cancelación de una conversión.

    Cada request crea el suyo; los proveedores lo consultan antes de cada
    llamada HTTP y durante el backoff entre reintentos.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        if self.cancelled:
            raise ConversionError(ErrorKind.CANCELLED, "conversion cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise ConversionError(ErrorKind.CANCELLED, "conversion deadline exceeded")

    def timeout_for(self, timeout: float) -> float:
        """Limita el timeout de un intento al tiempo que le queda al request."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)

    def sleep(self, seconds: float) -> None:
        """Espera interrumpible: cancelar despierta el sleep y aborta."""
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            # Dormir más allá del plazo no tiene sentido
            self._cancelled.wait(remaining)
            self.check()
            raise ConversionError(ErrorKind.CANCELLED, "conversion deadline exceeded")
        if self._cancelled.wait(seconds):
            raise ConversionError(ErrorKind.CANCELLED, "conversion cancelled")


def background() -> ConversionContext:
    """Contexto sin plazo, para llamadas fuera de un request."""
    return ConversionContext()
