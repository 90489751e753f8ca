"""Reconciliation of RozetkaPay callbacks against local orders.

A provider-reported outcome is accepted only when its status says the
transaction succeeded and its amount and currency exactly match the order
total. Two entry paths exist:

- notify: the asynchronous server-to-server callback payload
- return: a fresh info lookup made when the shopper comes back
"""

from .models import (
    CallbackMethod,
    Price,
    ReconciliationResult,
)
from .reconciler import Reconciler, to_decimal

__all__ = [
    # Models
    "CallbackMethod",
    "Price",
    "ReconciliationResult",
    # Core Components
    "Reconciler",
    "to_decimal",
]
