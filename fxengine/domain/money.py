# fxengine/domain/money.py
"""
Aritmética en centavos.

Todo monto público es un `int` de centavos. El float sólo se usa como
valor intermedio al multiplicar por una tasa, y se vuelve a entero con
`round_half_away_from_zero` (0.5 se redondea alejándose de cero).
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple


def round_half_away_from_zero(value: float) -> int:
    # Decimal(float) es exacto respecto al binario, igual que un round nativo.
    return int(Decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def normalize_currency(code: str) -> str:
    return code.strip().upper()


def apply_rate(amount_cents: int, rate: float) -> int:
    """Centavos origen * tasa (destino por unidad de origen)."""
    units = amount_cents / 100.0
    return round_half_away_from_zero(units * rate * 100.0)


def divide_by_rate(amount_cents: int, rate: float) -> int:
    """Centavos origen / tasa (origen por unidad de destino)."""
    units = amount_cents / 100.0
    return round_half_away_from_zero(units / rate * 100.0)


def cents_to_units(amount_cents: int) -> float:
    return amount_cents / 100.0


def parse_amount(raw: str) -> int:
    """
    Acepta centavos enteros ("1000" -> 1000) o unidades decimales
    ("10.00" -> 1000). Lanza ValueError si no es un número; los separadores
    "_" que int/float aceptan se rechazan.
    """
    raw = raw.strip()
    if "_" in raw:
        raise ValueError(f"invalid amount: {raw!r}")
    if "." in raw:
        return round_half_away_from_zero(float(raw) * 100.0)
    return int(raw)


def apply_fee(result_cents: int, fee_percent: float) -> Tuple[int, int]:
    """Devuelve (comisión, neto) en centavos."""
    fee_cents = round_half_away_from_zero(result_cents * fee_percent)
    return fee_cents, result_cents - fee_cents
