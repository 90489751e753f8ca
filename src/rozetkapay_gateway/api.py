import html
import logging
import os
from contextlib import asynccontextmanager
from decimal import Decimal
from functools import lru_cache
from typing import Optional
from urllib.parse import parse_qsl

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import ADMIN_RATE_LIMIT, limiter, require_admin
from .config import GatewayConfig
from .connectors import (
    ConnectorBase,
    PaymentGatewayError,
    RozetkaPayConnector,
    SimulatorConnector,
)
from .database import OrderRepository, PaymentRepository, close_db, get_db, init_db
from .forms import RedirectFormError, render_redirect_form
from .services import CheckoutService

logger = logging.getLogger(__name__)

# Connector backends selectable with ROZETKAPAY_CONNECTOR
CONNECTORS = {
    "rozetkapay": lambda: RozetkaPayConnector(GatewayConfig.from_env()),
    "simulator": SimulatorConnector,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await close_db()


app = FastAPI(title="RozetkaPay Checkout Gateway", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@lru_cache(maxsize=1)
def get_connector() -> ConnectorBase:
    name = os.getenv("ROZETKAPAY_CONNECTOR", "rozetkapay").lower()
    factory = CONNECTORS.get(name)
    if not factory:
        raise ValueError(f"Unsupported connector: {name}")
    return factory()


def get_checkout_service(
    db: AsyncSession = Depends(get_db),
    connector: ConnectorBase = Depends(get_connector),
) -> CheckoutService:
    return CheckoutService(connector, OrderRepository(db), PaymentRepository(db))


class RefundBody(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, description="Partial refund amount; defaults to the order total")


def _render_page(title: str, message: str, link: Optional[str] = None) -> str:
    link_html = f'<p><a href="{html.escape(link)}">Return to checkout</a></p>' if link else ""
    return f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
  <body>
    <h3>{html.escape(title)}</h3>
    <p>{html.escape(message)}</p>
    {link_html}
  </body>
</html>
"""


@app.exception_handler(PaymentGatewayError)
async def payment_gateway_error_handler(request: Request, exc: PaymentGatewayError):
    # provider error text stays in the log
    logger.error(f"Payment provider failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Payment provider unavailable"})


@app.get("/health")
async def health(connector: ConnectorBase = Depends(get_connector)):
    return connector.health_check()


@app.get("/checkout/{order_id}/pay", response_class=HTMLResponse, name="checkout_pay")
async def checkout_pay(
    order_id: int,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
):
    order = await service.load_order(order_id)
    if order is None:
        return HTMLResponse(_render_page("Order not found", f"Order {order_id} does not exist."), status_code=404)

    result_url = str(request.url_for("checkout_return", order_id=order.id))
    callback_url = str(request.url_for("payment_notify"))
    try:
        form = await service.start_checkout(order, result_url, callback_url)
    except (RedirectFormError, PaymentGatewayError) as e:
        logger.error(f"Could not start RozetkaPay checkout for order {order.id}: {e}")
        return HTMLResponse(
            _render_page("Payment unavailable", "We could not start the payment. Please try again later."),
            status_code=502,
        )
    return HTMLResponse(render_redirect_form(form))


@app.get("/checkout/{order_id}/return", response_class=HTMLResponse, name="checkout_return")
async def checkout_return(
    order_id: int,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
):
    order = await service.load_order(order_id)
    if order is None:
        return HTMLResponse(_render_page("Order not found", f"Order {order_id} does not exist."), status_code=404)

    try:
        outcome = await service.on_return(order)
    except PaymentGatewayError as e:
        logger.error(f"Payment info lookup failed for order {order.id}: {e}")
        return HTMLResponse(
            _render_page("Payment unavailable", "We could not confirm the payment. Please try again later."),
            status_code=502,
        )

    if outcome.cancelled:
        retry_url = str(request.url_for("checkout_pay", order_id=order.id))
        return HTMLResponse(_render_page("Payment cancelled", outcome.message, link=retry_url))
    return HTMLResponse(_render_page("Payment complete", outcome.message))


@app.post("/payment/notify/rozetkapay", response_class=PlainTextResponse, name="payment_notify")
async def payment_notify(
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
):
    body = await request.body()
    form = None
    if request.headers.get("content-type", "").startswith("application/x-www-form-urlencoded"):
        form = dict(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))
    result = await service.on_notify(body, form)
    return PlainTextResponse(result.body, status_code=result.status_code)


async def _load_order_or_404(service: CheckoutService, order_id: int):
    order = await service.load_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return order


@app.get("/payments/{order_id}/info", dependencies=[Depends(require_admin)])
@limiter.limit(ADMIN_RATE_LIMIT)
async def payment_info(
    request: Request,
    order_id: int,
    service: CheckoutService = Depends(get_checkout_service),
):
    order = await _load_order_or_404(service, order_id)
    return await service.payment_info(order)


@app.post("/payments/{order_id}/cancel", dependencies=[Depends(require_admin)])
@limiter.limit(ADMIN_RATE_LIMIT)
async def payment_cancel(
    request: Request,
    order_id: int,
    service: CheckoutService = Depends(get_checkout_service),
):
    order = await _load_order_or_404(service, order_id)
    return await service.cancel_payment(order)


@app.post("/payments/{order_id}/refund", dependencies=[Depends(require_admin)])
@limiter.limit(ADMIN_RATE_LIMIT)
async def payment_refund(
    request: Request,
    order_id: int,
    body: Optional[RefundBody] = None,
    service: CheckoutService = Depends(get_checkout_service),
):
    order = await _load_order_or_404(service, order_id)
    amount = body.amount if body else None
    return await service.refund_payment(order, amount)
