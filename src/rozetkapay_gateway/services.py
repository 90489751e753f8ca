"""Checkout service: starts RozetkaPay payments and settles their callbacks."""

import json
import logging
from decimal import Decimal
from typing import Optional, Dict, Any, Mapping, Protocol

from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from .connectors.base import (
    ConnectorBase,
    PaymentRequest,
    build_external_id,
    order_id_from_external_id,
)
from .database.models import Order, Payment
from .forms import RedirectForm, build_redirect_form
from .reconciliation import CallbackMethod, Reconciler

logger = logging.getLogger(__name__)

GATEWAY_ID = "rozetkapay_redirect"

EMPTY_PAYLOAD_MESSAGE = "Error while processing payment. Details: request data is empty"
MISSING_EXTERNAL_ID_MESSAGE = "Missing external_id parameter."


class OrderStore(Protocol):
    async def get_by_id(self, order_id) -> Optional[Order]: ...


class PaymentStore(Protocol):
    async def create_completed(
        self,
        order: Order,
        payment_gateway: str,
        remote_id: Optional[str],
        remote_state: Optional[str],
    ) -> Payment: ...


class CheckoutOutcome(BaseModel):
    """Result of the shopper returning from the hosted page."""
    completed: bool
    message: str
    message_type: str = "status"
    transaction_id: Optional[str] = None
    payment_id: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return not self.completed


class NotifyResponse(BaseModel):
    """Status/body pair answered to the provider's server notification."""
    status_code: int
    body: str


class CheckoutService:
    """Runs the checkout callbacks against injected order and payment storage."""

    def __init__(
        self,
        connector: ConnectorBase,
        orders: OrderStore,
        payments: PaymentStore,
        reconciler: Optional[Reconciler] = None,
        gateway_id: str = GATEWAY_ID,
    ):
        self.connector = connector
        self.orders = orders
        self.payments = payments
        self.reconciler = reconciler or Reconciler()
        self.gateway_id = gateway_id

    async def load_order(self, order_id) -> Optional[Order]:
        return await self.orders.get_by_id(order_id)

    def build_payment_request(
        self,
        order: Order,
        result_url: str,
        callback_url: str,
    ) -> PaymentRequest:
        total = order.total_price
        if order.is_anonymous:
            description = "Customer: anonymous"
        else:
            description = f"Customer: {order.customer_name}. Order #: {order.id}"
        return PaymentRequest(
            amount=total.number,
            currency=total.currency_code,
            external_id=build_external_id(order.id),
            description=description,
            result_url=result_url,
            callback_url=callback_url,
        )

    async def start_checkout(
        self,
        order: Order,
        result_url: str,
        callback_url: str,
    ) -> RedirectForm:
        """Create the hosted payment and return the form redirecting to it.

        Raises:
            RedirectFormError: If the provider did not accept the payment.
            PaymentGatewayError: On transport failure.
        """
        request = self.build_payment_request(order, result_url, callback_url)
        return await run_in_threadpool(build_redirect_form, self.connector, request)

    async def on_return(self, order: Order) -> CheckoutOutcome:
        """Settle the order from a fresh info lookup when the shopper comes back.

        Query parameters of the return redirect are never trusted.
        """
        info, status_code = await run_in_threadpool(self.connector.payment_info, order.id)

        if info is None:
            logger.error(f"Invalid Transaction. Order #{order.id}. Status code: {status_code}")
            return CheckoutOutcome(
                completed=False,
                message="Invalid Transaction. Please try again",
                message_type="error",
            )

        result = self.reconciler.is_payment_valid(
            order.total_price, info, CallbackMethod.RETURN
        )
        if not result.valid:
            logger.error(f"Invalid order #{order.id}: payment info did not validate")
            return CheckoutOutcome(
                completed=False,
                message="Invalid. Please try again",
                message_type="error",
            )

        payment = await self.payments.create_completed(
            order,
            payment_gateway=self.gateway_id,
            remote_id=info.id,
            remote_state=result.order_status,
        )
        return CheckoutOutcome(
            completed=True,
            message=(
                f"Your payment was successful with Order id : {order.id} "
                f"and Transaction id : {result.transaction_id}"
            ),
            transaction_id=result.transaction_id,
            payment_id=payment.id,
        )

    async def on_notify(
        self,
        body: bytes,
        form: Optional[Mapping[str, Any]] = None,
    ) -> NotifyResponse:
        """Handle the provider's server-to-server notification.

        Form fields win when present; otherwise the raw body is decoded as
        JSON. Every branch answers with an explicit status and body.
        """
        if form:
            decoded: Any = dict(form)
        elif body and body.strip():
            try:
                decoded = json.loads(body, parse_float=Decimal)
            except ValueError:
                decoded = None
        else:
            logger.error(EMPTY_PAYLOAD_MESSAGE)
            return NotifyResponse(status_code=400, body=EMPTY_PAYLOAD_MESSAGE)

        if not isinstance(decoded, dict) or not decoded.get("external_id"):
            logger.error(MISSING_EXTERNAL_ID_MESSAGE)
            return NotifyResponse(status_code=400, body=MISSING_EXTERNAL_ID_MESSAGE)

        order_id = order_id_from_external_id(decoded["external_id"])
        order = await self.orders.get_by_id(order_id)
        if order is None:
            details = decoded.get("details")
            details = details if isinstance(details, dict) else {}
            message = (
                f"Order {order_id} does not exist. "
                f"Transaction #{details.get('transaction_id')} status: {details.get('status')}."
            )
            logger.error(message)
            return NotifyResponse(status_code=400, body=message)

        result = self.reconciler.is_payment_valid(order.total_price, decoded)
        if not result.valid:
            logger.error(f"Invalid Transaction for order #{order.id}")
            return NotifyResponse(status_code=200, body="Payment rejected.")

        remote_id = decoded.get("id")
        payment = await self.payments.create_completed(
            order,
            payment_gateway=self.gateway_id,
            remote_id=str(remote_id) if remote_id is not None else None,
            remote_state=result.order_status,
        )
        logger.info(
            f"Payment {payment.id} completed for order #{order.id}, "
            f"transaction {result.transaction_id}"
        )
        return NotifyResponse(status_code=200, body="OK")

    async def cancel_payment(self, order: Order) -> Dict[str, Any]:
        total = order.total_price
        data, status_code = await run_in_threadpool(
            self.connector.payment_cancel, order.id, total.number, total.currency_code
        )
        return {"status_code": status_code, "response": data}

    async def refund_payment(self, order: Order, amount: Optional[Decimal] = None) -> Dict[str, Any]:
        total = order.total_price
        data, status_code = await run_in_threadpool(
            self.connector.payment_refund,
            order.id,
            amount if amount is not None else total.number,
            total.currency_code,
        )
        return {"status_code": status_code, "response": data}

    async def payment_info(self, order: Order) -> Dict[str, Any]:
        info, status_code = await run_in_threadpool(self.connector.payment_info, order.id)
        return {
            "status_code": status_code,
            "response": info.model_dump() if info is not None else None,
        }
