"""Validation of provider callbacks against the order they claim to pay."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ..connectors.base import PaymentInfo, TransactionDetail, TRANSACTION_SUCCESSFUL
from .models import CallbackMethod, Price, ReconciliationResult

logger = logging.getLogger(__name__)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a provider amount to Decimal, or None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, int):
            amount = Decimal(value)
        elif isinstance(value, float):
            amount = Decimal(str(value))
        elif isinstance(value, str):
            amount = Decimal(value.strip())
        else:
            return None
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


class Reconciler:
    """Decides whether a provider response proves the order was paid.

    The amount/currency match against the order total is the only integrity
    check: notifications carry no signature.
    """

    def validate_sum(self, amount: Any, currency: Any, order_total: Price) -> bool:
        """Exact match of currency (case-sensitive) and amount (no tolerance)."""
        if currency != order_total.currency_code:
            return False
        transaction_amount = to_decimal(amount)
        if transaction_amount is None:
            return False
        return transaction_amount == order_total.number

    def is_payment_valid(
        self,
        order_total: Price,
        response: Union[Mapping[str, Any], PaymentInfo],
        callback_method: CallbackMethod = CallbackMethod.NOTIFY,
    ) -> ReconciliationResult:
        """Validate a notify payload or, for the return path, an info lookup."""
        if CallbackMethod(callback_method) == CallbackMethod.RETURN:
            if not isinstance(response, PaymentInfo):
                response = PaymentInfo.from_provider(dict(response))
            return self.get_payment_info_details(order_total, response)

        if not isinstance(response, Mapping):
            return ReconciliationResult.invalid()
        details = response.get("details")
        if response.get("is_success") is not True or not isinstance(details, Mapping):
            return ReconciliationResult.invalid()
        try:
            detail = TransactionDetail.model_validate(dict(details))
        except ValidationError:
            logger.warning("Notification details could not be decoded")
            return ReconciliationResult.invalid()

        if detail.status_code == TRANSACTION_SUCCESSFUL and self.validate_sum(
            detail.amount, detail.currency, order_total
        ):
            return ReconciliationResult.from_detail(detail)
        return ReconciliationResult.invalid()

    def get_payment_info_details(
        self,
        order_total: Price,
        info: PaymentInfo,
    ) -> ReconciliationResult:
        """Return the first qualifying section's first entry.

        Sections are consulted purchase -> confirmation -> refund. The sum is
        checked against the info response's top-level amount and currency,
        not the entry's own.
        """
        for _name, entries in info.sections():
            if not entries:
                continue
            detail = entries[0]
            if detail.status_code == TRANSACTION_SUCCESSFUL and self.validate_sum(
                info.amount, info.currency, order_total
            ):
                return ReconciliationResult.from_detail(detail)
        return ReconciliationResult.invalid()
