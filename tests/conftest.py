"""Shared test fixtures and configuration."""

import os
import json
from decimal import Decimal
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Set up test environment variables before importing modules
os.environ.setdefault("ROZETKAPAY_LOGIN", "test_login")
os.environ.setdefault("ROZETKAPAY_PASSWORD", "test_password")
os.environ.setdefault("ROZETKAPAY_ADMIN_API_KEY", "test_admin_key_12345")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from rozetkapay_gateway.config import GatewayConfig
from rozetkapay_gateway.connectors import RozetkaPayConnector
from rozetkapay_gateway.database import (
    Base,
    OrderRepository,
    PaymentRepository,
    create_async_engine,
    get_async_session_factory,
)
from rozetkapay_gateway.reconciliation import Price


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(login="test_login", password="test_password")


class RecordingTransport:
    """Collects requests and answers them with a canned httpx.Response."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.last.content)


@pytest.fixture
def make_connector(gateway_config):
    """Build a RozetkaPayConnector whose HTTP traffic goes to a handler."""
    created = []

    def _make(handler, config: GatewayConfig = None):
        transport = RecordingTransport(handler)
        client = httpx.Client(transport=httpx.MockTransport(transport))
        connector = RozetkaPayConnector(config or gateway_config, http_client=client)
        created.append(client)
        return connector, transport

    yield _make
    for client in created:
        client.close()


@pytest.fixture
def order_total() -> Price:
    return Price(number=Decimal("199.99"), currency_code="UAH")


@pytest.fixture
def notify_payload() -> Dict[str, Any]:
    """Notification for order 1042 paying 199.99 UAH."""
    return {
        "id": "pay_abc123",
        "external_id": "order_1042",
        "is_success": True,
        "details": {
            "transaction_id": "T1",
            "status": "success",
            "status_code": "transaction_successful",
            "status_description": "Transaction successful",
            "amount": 199.99,
            "currency": "UAH",
        },
    }


@pytest.fixture
def info_response() -> Dict[str, Any]:
    """Raw payments/v1/info answer for a paid order."""
    return {
        "id": "pay_abc123",
        "external_id": "order_11042",
        "amount": 199.99,
        "currency": "UAH",
        "purchase_details": [
            {
                "transaction_id": "T1",
                "status": "success",
                "status_code": "transaction_successful",
                "status_description": "Transaction successful",
                "amount": 199.99,
                "currency": "UAH",
            }
        ],
    }


# Database fixtures
@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        database_url="sqlite+aiosqlite:///:memory:",
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a database session for testing."""
    session_factory = get_async_session_factory(db_engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def order_repo(db_session):
    return OrderRepository(db_session)


@pytest.fixture
def payment_repo(db_session):
    return PaymentRepository(db_session)
