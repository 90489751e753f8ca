"""Models for callback reconciliation."""

import enum
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..connectors.base import TransactionDetail


class CallbackMethod(str, enum.Enum):
    """Which callback path triggered validation."""
    NOTIFY = "notify"
    RETURN = "return"


class Price(BaseModel):
    """An order total as the host reports it."""
    model_config = ConfigDict(frozen=True)

    number: Decimal = Field(..., description="Amount in major units, e.g. 199.99")
    currency_code: str = Field(..., description="Three-letter currency code")


class ReconciliationResult(BaseModel):
    """Verdict on a provider-reported outcome for one order."""
    valid: bool = Field(..., description="True only when the payment may be recorded as completed")
    transaction_id: Optional[str] = Field(None, description="Provider transaction ID")
    order_status: Optional[str] = Field(None, description="Provider status string, stored as remote state")
    order_status_code: Optional[str] = Field(None, description="Provider status code")
    detail: Optional[TransactionDetail] = Field(None, description="The detail record that qualified")

    @classmethod
    def invalid(cls) -> "ReconciliationResult":
        return cls(valid=False)

    @classmethod
    def from_detail(cls, detail: TransactionDetail) -> "ReconciliationResult":
        return cls(
            valid=True,
            transaction_id=detail.transaction_id,
            order_status=detail.status,
            order_status_code=detail.status_code,
            detail=detail,
        )

    def __bool__(self) -> bool:
        return self.valid
