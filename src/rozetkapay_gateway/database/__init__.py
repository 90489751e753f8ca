"""Order and payment storage for the checkout callbacks."""

from .models import (
    Base,
    Order,
    Payment,
    PaymentState,
)
from .session import (
    get_db,
    get_database_url,
    init_db,
    close_db,
    create_async_engine,
    get_async_session_factory,
)
from .repository import (
    OrderRepository,
    PaymentRepository,
)

__all__ = [
    # Models
    "Base",
    "Order",
    "Payment",
    "PaymentState",
    # Session management
    "get_db",
    "get_database_url",
    "init_db",
    "close_db",
    "create_async_engine",
    "get_async_session_factory",
    # Repositories
    "OrderRepository",
    "PaymentRepository",
]
