# rozetkapay_gateway package
__version__ = "0.1.0"

from .config import GatewayConfig
from .connectors import (
    ConnectorBase,
    PaymentGatewayError,
    PaymentRequest,
    ProviderResponse,
    PaymentInfo,
    TransactionDetail,
    RozetkaPayConnector,
    SimulatorConnector,
)
from .database import (
    Order,
    Payment,
    PaymentState,
    init_db,
    close_db,
    get_db,
)
from .forms import RedirectForm, RedirectFormError, build_redirect_form, render_redirect_form
from .services import CheckoutService, CheckoutOutcome, NotifyResponse

# Reconciliation exports
from .reconciliation import (
    CallbackMethod,
    Price,
    ReconciliationResult,
    Reconciler,
)
