# fxengine/domain/errors.py
from enum import Enum
from typing import Optional

BODY_SNIPPET_LIMIT = 512


class ErrorKind(str, Enum):
    UPSTREAM_STATUS = "upstream_status"
    DECODE = "decode"
    MISSING_API_KEY = "missing_api_key"
    UNSUCCESSFUL = "unsuccessful"
    CURRENCY_NOT_FOUND = "currency_not_found"
    RATE_WINDOW_EXHAUSTED = "rate_window_exhausted"
    CANCELLED = "cancelled"


class ConversionError(Exception):
    """
    Error de conversión etiquetado con su tipo (`kind`).

    Los errores de transporte (requests.RequestException) NO se envuelven:
    se propagan tal cual desde los proveedores.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        info: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.kind = kind
        self.message = message
        self.info = info
        self.status_code = status_code
        self.body = body
        super().__init__(self._render())

    def _render(self) -> str:
        text = self.message
        if self.kind is ErrorKind.MISSING_API_KEY:
            text = f"missing exchange provider API key: {self.info or ''}".rstrip()
        if self.status_code is not None:
            text += f" status={self.status_code}"
        if self.body:
            text += f" body={self.body[:BODY_SNIPPET_LIMIT]}"
        return text

    @property
    def is_missing_api_key(self) -> bool:
        return self.kind is ErrorKind.MISSING_API_KEY

    @classmethod
    def missing_api_key(cls, info: str = "") -> "ConversionError":
        return cls(ErrorKind.MISSING_API_KEY, "missing exchange provider API key", info=info)

    @classmethod
    def upstream_status(cls, source: str, status_code: int, body: str) -> "ConversionError":
        return cls(
            ErrorKind.UPSTREAM_STATUS,
            f"{source} request failed",
            status_code=status_code,
            body=body,
        )

    @classmethod
    def currency_not_found(cls, currency: str) -> "ConversionError":
        return cls(
            ErrorKind.CURRENCY_NOT_FOUND,
            f"currency {currency} not found in exchange rates",
            info=currency,
        )
