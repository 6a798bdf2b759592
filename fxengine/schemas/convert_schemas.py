# fxengine/schemas/convert_schemas.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fxengine.domain.services.conversion_service import ConversionResult


class ConversionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    amount_cents: int
    result_cents: int
    result: float
    fee_percent: float
    fee_amount_cents: int
    net_result_cents: int
    net_result: float
    provider: str
    fee_error: Optional[str] = None

    @classmethod
    def from_result(cls, result: ConversionResult) -> "ConversionResponse":
        return cls(
            from_currency=result.from_currency,
            to_currency=result.to_currency,
            amount_cents=result.amount_cents,
            result_cents=result.result_cents,
            result=result.result,
            fee_percent=result.fee_percent,
            fee_amount_cents=result.fee_amount_cents,
            net_result_cents=result.net_result_cents,
            net_result=result.net_result,
            provider=result.provider,
            fee_error=result.fee_error,
        )
