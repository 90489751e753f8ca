"""Payment provider connectors."""

from .base import (
    ConnectorBase,
    PaymentGatewayError,
    PaymentRequest,
    ProviderResponse,
    TransactionDetail,
    PaymentInfo,
    PAYMENT_INFO_DETAILS,
    TRANSACTION_SUCCESSFUL,
    build_external_id,
    order_id_from_external_id,
)
from .rozetkapay_connector import RozetkaPayConnector
from .simulator_connector import (
    SimulatorConnector,
    SimulatedPayment,
)

__all__ = [
    # Base classes and models
    "ConnectorBase",
    "PaymentGatewayError",
    "PaymentRequest",
    "ProviderResponse",
    "TransactionDetail",
    "PaymentInfo",
    "PAYMENT_INFO_DETAILS",
    "TRANSACTION_SUCCESSFUL",
    # External id helpers
    "build_external_id",
    "order_id_from_external_id",
    # Connectors
    "RozetkaPayConnector",
    "SimulatorConnector",
    "SimulatedPayment",
]
