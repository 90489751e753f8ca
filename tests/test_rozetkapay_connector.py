"""Tests for the RozetkaPay HTTP connector."""

import base64
import json
from decimal import Decimal

import httpx
import pytest

from rozetkapay_gateway.config import GatewayConfig
from rozetkapay_gateway.connectors import (
    PaymentGatewayError,
    PaymentInfo,
    PaymentRequest,
    ProviderResponse,
    build_external_id,
)


def json_response(status_code, payload):
    return lambda request: httpx.Response(status_code, json=payload)


@pytest.fixture
def payment_request():
    return PaymentRequest(
        amount=Decimal("199.99"),
        currency="UAH",
        external_id=build_external_id(1042),
        description="Customer: john. Order #: 1042",
        result_url="https://shop.example/checkout/1042/return",
        callback_url="https://shop.example/payment/notify/rozetkapay",
    )


class TestDoRequest:
    """Tests for the generic request primitive."""

    def test_sends_basic_auth(self, make_connector):
        connector, transport = make_connector(json_response(200, {"ok": True}))
        connector.do_request("payments/v1/info?external_id=order_11")

        expected = base64.b64encode(b"test_login:test_password").decode("ascii")
        assert transport.last.headers["Authorization"] == f"Basic {expected}"
        assert transport.last.headers["Content-Type"] == "application/json"

    def test_url_is_base_url_plus_path(self, make_connector):
        connector, transport = make_connector(json_response(200, {}))
        connector.do_request("payments/v1/new", {"a": 1}, "post")

        assert transport.last.method == "POST"
        assert str(transport.last.url) == "https://api.rozetkapay.com/api/payments/v1/new"

    def test_returns_decoded_body_and_status(self, make_connector):
        connector, _ = make_connector(json_response(200, {"id": "pay_1", "amount": 199.99}))
        data, status_code = connector.do_request("payments/v1/info")

        assert status_code == 200
        assert data["id"] == "pay_1"
        assert data["amount"] == Decimal("199.99")

    def test_http_errors_are_returned_not_raised(self, make_connector):
        connector, _ = make_connector(json_response(400, {"code": "validation_error"}))
        response = connector.do_request("payments/v1/new", {"a": 1}, "POST")

        assert isinstance(response, ProviderResponse)
        assert response.status_code == 400
        assert response.data == {"code": "validation_error"}
        assert not response.ok

    def test_empty_body_decodes_to_none(self, make_connector):
        connector, _ = make_connector(lambda request: httpx.Response(500, content=b""))
        data, status_code = connector.do_request("payments/v1/info")

        assert data is None
        assert status_code == 500

    def test_connection_error_raises_gateway_error(self, make_connector):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        connector, _ = make_connector(handler)
        with pytest.raises(PaymentGatewayError) as exc_info:
            connector.do_request("payments/v1/info")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_timeout_raises_gateway_error(self, make_connector):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        connector, _ = make_connector(handler)
        with pytest.raises(PaymentGatewayError):
            connector.do_request("payments/v1/info")

    def test_invalid_json_raises_gateway_error(self, make_connector):
        connector, _ = make_connector(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(PaymentGatewayError):
            connector.do_request("payments/v1/info")

    def test_credentials_not_in_error_message(self, make_connector):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        connector, _ = make_connector(handler)
        with pytest.raises(PaymentGatewayError) as exc_info:
            connector.do_request("payments/v1/info")
        assert "test_password" not in str(exc_info.value)


class TestPaymentCreate:
    """Tests for payment_create."""

    def test_create_body(self, make_connector, payment_request):
        connector, transport = make_connector(json_response(200, {"action": {"value": "https://pay.example"}}))
        data, status_code = connector.payment_create(payment_request)

        assert status_code == 200
        assert data["action"]["value"] == "https://pay.example"
        assert transport.last.url.path == "/api/payments/v1/new"
        assert b'"external_id":"order_1042"' in transport.last.content
        assert transport.last_json() == {
            "amount": "199.99",
            "currency": "UAH",
            "description": "Customer: john. Order #: 1042",
            "external_id": "order_1042",
            "mode": "hosted",
            "callback_url": "https://shop.example/payment/notify/rozetkapay",
            "result_url": "https://shop.example/checkout/1042/return",
        }


class TestPaymentInfo:
    """Tests for payment_info."""

    def test_info_uses_legacy_prefix(self, make_connector, info_response):
        connector, transport = make_connector(json_response(200, info_response))
        connector.payment_info("1042")

        assert transport.last.method == "GET"
        assert transport.last.url.path == "/api/payments/v1/info"
        assert transport.last.url.params["external_id"] == "order_11042"

    def test_info_prefix_is_configurable(self, make_connector, info_response):
        config = GatewayConfig(login="test_login", password="test_password", info_id_prefix="order_")
        connector, transport = make_connector(json_response(200, info_response), config=config)
        connector.payment_info("1042")

        assert transport.last.url.params["external_id"] == "order_1042"

    def test_info_normalizes_sections(self, make_connector, info_response):
        info_response["refund_details"] = [
            {"transaction_id": "R1", "status": "refunded", "status_code": "transaction_refunded",
             "status_description": "Refunded", "amount": 10, "currency": "UAH", "extra": "ignored"},
        ]
        connector, _ = make_connector(json_response(200, info_response))
        info, status_code = connector.payment_info("1042")

        assert status_code == 200
        assert isinstance(info, PaymentInfo)
        assert info.id == "pay_abc123"
        assert info.amount == Decimal("199.99")
        assert info.currency == "UAH"
        assert [d.transaction_id for d in info.purchase_details] == ["T1"]
        assert info.purchase_details[0].status_code == "transaction_successful"
        assert info.confirmation_details == []
        assert info.refund_details[0].transaction_id == "R1"

    def test_info_failure_returns_none(self, make_connector):
        connector, _ = make_connector(lambda request: httpx.Response(404, content=b""))
        info, status_code = connector.payment_info("1042")

        assert info is None
        assert status_code == 404

    def test_info_error_body_is_normalized(self, make_connector):
        connector, _ = make_connector(json_response(404, {"code": "payment_not_found"}))
        info, status_code = connector.payment_info("1042")

        assert status_code == 404
        assert info is not None
        assert info.id is None
        assert info.purchase_details == []


class TestCancelAndRefund:
    """Tests for payment_cancel and payment_refund."""

    def test_cancel(self, make_connector):
        connector, transport = make_connector(json_response(200, {"is_success": True}))
        data, status_code = connector.payment_cancel(1042, Decimal("199.99"), "UAH")

        assert status_code == 200
        assert data == {"is_success": True}
        assert transport.last.method == "POST"
        assert transport.last.url.path == "/api/payments/v1/cancel"
        assert transport.last_json() == {"external_id": "order_1042", "amount": "199.99", "currency": "UAH"}

    def test_refund(self, make_connector):
        connector, transport = make_connector(json_response(422, {"code": "invalid_amount"}))
        data, status_code = connector.payment_refund(1042, Decimal("50.00"), "UAH")

        assert status_code == 422
        assert data["code"] == "invalid_amount"
        assert transport.last.url.path == "/api/payments/v1/refund"
        assert json.loads(transport.last.content)["amount"] == "50.00"
