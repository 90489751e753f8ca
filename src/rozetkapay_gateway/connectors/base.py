import re
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, Dict, Any, List, NamedTuple, Tuple, Iterator

from pydantic import BaseModel, ConfigDict, Field

# Section names of the info response, in the order they are consulted.
PAYMENT_INFO_DETAILS = (
    "purchase_details",
    "confirmation_details",
    "refund_details",
)

TRANSACTION_SUCCESSFUL = "transaction_successful"


class PaymentGatewayError(Exception):
    """Transport-level failure talking to the provider (connection, timeout, bad body)."""


def build_external_id(order_id) -> str:
    return f"order_{order_id}"


def order_id_from_external_id(external_id: str) -> str:
    """Strip every non-digit: "order_1042" -> "1042"."""
    return re.sub(r"\D", "", str(external_id))


# Canonical models
class PaymentRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str
    external_id: str
    description: str
    result_url: str
    callback_url: str
    mode: str = "hosted"

    def to_provider_payload(self) -> Dict[str, Any]:
        return {
            "amount": str(self.amount),
            "currency": self.currency,
            "description": self.description,
            "external_id": self.external_id,
            "mode": self.mode,
            "callback_url": self.callback_url,
            "result_url": self.result_url,
        }


class ProviderResponse(NamedTuple):
    """Decoded provider body paired with the HTTP status code.

    HTTP error statuses are data here, not exceptions; callers branch on
    ``status_code``. Unpacks as ``data, status_code = response``.
    """
    data: Optional[Any]
    status_code: int

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class TransactionDetail(BaseModel):
    """One transaction record from a provider response section."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    transaction_id: Optional[str] = None
    status: Optional[str] = None
    status_code: Optional[str] = None
    status_description: Optional[str] = None
    # left untyped: amounts are checked against the order by the reconciler,
    # a malformed value must fail that check rather than the decode
    amount: Optional[Any] = None
    currency: Optional[str] = None


class PaymentInfo(BaseModel):
    """Normalized result of the ``payments/{version}/info`` lookup."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    amount: Optional[Any] = None
    currency: Optional[str] = None
    purchase_details: List[TransactionDetail] = Field(default_factory=list)
    confirmation_details: List[TransactionDetail] = Field(default_factory=list)
    refund_details: List[TransactionDetail] = Field(default_factory=list)

    @classmethod
    def from_provider(cls, data: Optional[Dict[str, Any]]) -> "PaymentInfo":
        data = data if isinstance(data, dict) else {}
        sections: Dict[str, List[TransactionDetail]] = {}
        for name in PAYMENT_INFO_DETAILS:
            entries = data.get(name) or []
            if isinstance(entries, dict):
                entries = [entries]
            sections[name] = [
                TransactionDetail.model_validate(entry)
                for entry in entries
                if isinstance(entry, dict)
            ]
        remote_id = data.get("id")
        return cls(
            id=str(remote_id) if remote_id is not None else None,
            amount=data.get("amount"),
            currency=data.get("currency"),
            **sections,
        )

    def sections(self) -> Iterator[Tuple[str, List[TransactionDetail]]]:
        for name in PAYMENT_INFO_DETAILS:
            yield name, getattr(self, name)


class ConnectorBase(ABC):
    """
    Operations a RozetkaPay-compatible backend must provide. Every method
    returns provider data as-is; only transport failures raise
    PaymentGatewayError.
    """

    @abstractmethod
    def payment_create(self, request: PaymentRequest) -> ProviderResponse:
        """Create a hosted payment session; the body carries ``action.value``."""
        raise NotImplementedError

    @abstractmethod
    def payment_info(self, order_id) -> Tuple[Optional[PaymentInfo], int]:
        raise NotImplementedError

    @abstractmethod
    def payment_cancel(self, order_id, amount: Decimal, currency: str) -> ProviderResponse:
        raise NotImplementedError

    @abstractmethod
    def payment_refund(self, order_id, amount: Decimal, currency: str) -> ProviderResponse:
        raise NotImplementedError

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True}
