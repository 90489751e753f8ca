"""Simulator connector for exercising checkout flows without calling RozetkaPay."""

import uuid
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any, List, Optional, Tuple

from .base import (
    ConnectorBase,
    PaymentInfo,
    PaymentRequest,
    ProviderResponse,
    TRANSACTION_SUCCESSFUL,
    build_external_id,
)

logger = logging.getLogger(__name__)

HOSTED_PAGE_URL = "https://checkout.simulator.local/pay"


@dataclass
class SimulatedPayment:
    """In-memory representation of a payment held by the simulated provider."""
    id: str
    external_id: str
    amount: Decimal
    currency: str
    description: str = ""
    callback_url: str = ""
    result_url: str = ""
    status: str = "pending"
    created_at: datetime = field(default_factory=datetime.utcnow)
    purchase_details: List[Dict[str, Any]] = field(default_factory=list)
    confirmation_details: List[Dict[str, Any]] = field(default_factory=list)
    refund_details: List[Dict[str, Any]] = field(default_factory=list)


class SimulatorConnector(ConnectorBase):
    """
    Stands in for the RozetkaPay API during local development and tests.

    Payments are created pending; call complete_payment() to play the shopper
    paying (or failing) on the hosted page, then build_notification() for the
    server-to-server callback the provider would send.
    """

    def __init__(self, info_id_prefix: str = "order_"):
        self.info_id_prefix = info_id_prefix
        self._payments: Dict[str, SimulatedPayment] = {}
        logger.info("SimulatorConnector initialized")

    def _generate_id(self, prefix: str) -> str:
        return f"{prefix}_{uuid.uuid4().hex[:24]}"

    @staticmethod
    def _not_found(external_id: str) -> ProviderResponse:
        return ProviderResponse(
            {"code": "payment_not_found", "message": f"Payment {external_id} not found"},
            404,
        )

    def _detail(self, payment: SimulatedPayment, status: str, status_code: str) -> Dict[str, Any]:
        return {
            "transaction_id": self._generate_id("txn"),
            "status": status,
            "status_code": status_code,
            "status_description": status_code.replace("_", " "),
            "amount": payment.amount,
            "currency": payment.currency,
        }

    def payment_create(self, request: PaymentRequest) -> ProviderResponse:
        existing = self._payments.get(request.external_id)
        if existing and existing.status == "success":
            return ProviderResponse(
                {"code": "payment_already_paid", "message": "Payment already completed"},
                400,
            )
        payment = SimulatedPayment(
            id=self._generate_id("pay"),
            external_id=request.external_id,
            amount=request.amount,
            currency=request.currency,
            description=request.description,
            callback_url=request.callback_url,
            result_url=request.result_url,
        )
        self._payments[request.external_id] = payment
        return ProviderResponse(
            {
                "id": payment.id,
                "external_id": payment.external_id,
                "is_success": True,
                "action_required": True,
                "action": {"type": "url", "value": f"{HOSTED_PAGE_URL}?payment={payment.id}"},
            },
            200,
        )

    def complete_payment(self, external_id: str, success: bool = True) -> Optional[SimulatedPayment]:
        """Resolve a pending payment as paid or declined (simulator-specific)."""
        payment = self._payments.get(external_id)
        if payment is None:
            return None
        if success:
            payment.status = "success"
            detail = self._detail(payment, "success", TRANSACTION_SUCCESSFUL)
        else:
            payment.status = "failure"
            detail = self._detail(payment, "failure", "transaction_declined")
        payment.purchase_details.append(detail)
        return payment

    def build_notification(self, external_id: str) -> Dict[str, Any]:
        """Return the callback payload the provider posts for a resolved payment."""
        payment = self._payments[external_id]
        detail = payment.purchase_details[-1] if payment.purchase_details else self._detail(
            payment, "pending", "transaction_pending"
        )
        return {
            "id": payment.id,
            "external_id": payment.external_id,
            "is_success": payment.status == "success",
            "details": dict(detail),
        }

    def payment_info(self, order_id) -> Tuple[Optional[PaymentInfo], int]:
        external_id = f"{self.info_id_prefix}{order_id}"
        payment = self._payments.get(external_id)
        if payment is None:
            return None, 404
        return PaymentInfo.from_provider({
            "id": payment.id,
            "amount": payment.amount,
            "currency": payment.currency,
            "purchase_details": payment.purchase_details,
            "confirmation_details": payment.confirmation_details,
            "refund_details": payment.refund_details,
        }), 200

    def payment_cancel(self, order_id, amount: Decimal, currency: str) -> ProviderResponse:
        payment = self._payments.get(build_external_id(order_id))
        if payment is None:
            return self._not_found(build_external_id(order_id))
        if payment.status != "pending":
            return ProviderResponse(
                {"code": "invalid_state", "message": f"Cannot cancel {payment.status} payment"},
                400,
            )
        payment.status = "cancelled"
        payment.confirmation_details.append(self._detail(payment, "cancelled", "transaction_cancelled"))
        return ProviderResponse({"id": payment.id, "is_success": True, "status": payment.status}, 200)

    def payment_refund(self, order_id, amount: Decimal, currency: str) -> ProviderResponse:
        payment = self._payments.get(build_external_id(order_id))
        if payment is None:
            return self._not_found(build_external_id(order_id))
        if payment.status != "success":
            return ProviderResponse(
                {"code": "invalid_state", "message": f"Cannot refund {payment.status} payment"},
                400,
            )
        if currency != payment.currency or Decimal(str(amount)) > payment.amount:
            return ProviderResponse(
                {"code": "invalid_amount", "message": "Refund exceeds the paid amount"},
                400,
            )
        payment.refund_details.append(self._detail(payment, "refunded", "transaction_refunded"))
        return ProviderResponse({"id": payment.id, "is_success": True, "status": "refunded"}, 200)

    def get_payment(self, external_id: str) -> Optional[SimulatedPayment]:
        """Get a payment from in-memory storage (for testing)."""
        return self._payments.get(external_id)

    def clear_payments(self) -> None:
        self._payments.clear()

    def health_check(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "provider": "simulator",
            "payment_count": len(self._payments),
        }
