"""Tests for the rozetkapay command-line tool."""

import argparse
import json
import os
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from rozetkapay_gateway.cli import create_parser, main, parse_amount
from rozetkapay_gateway.connectors import PaymentGatewayError, PaymentInfo, ProviderResponse


@pytest.fixture
def connector():
    """Patch the connector the CLI builds and hand back the instance."""
    with patch("rozetkapay_gateway.cli.RozetkaPayConnector") as connector_cls:
        instance = MagicMock()
        connector_cls.return_value.__enter__.return_value = instance
        yield instance


class TestParser:
    def test_parse_amount(self):
        assert parse_amount("199.99") == Decimal("199.99")

    @pytest.mark.parametrize("value", ["abc", "0", "-5", "NaN", "Infinity"])
    def test_parse_amount_rejects(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_amount(value)

    def test_refund_arguments(self):
        args = create_parser().parse_args(["refund", "1042", "-a", "50.00", "-c", "UAH"])

        assert args.command == "refund"
        assert args.order_id == "1042"
        assert args.amount == Decimal("50.00")
        assert args.currency == "UAH"

    def test_cancel_requires_amount(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["cancel", "1042", "--currency", "UAH"])


class TestMain:
    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_info(self, connector, capsys):
        connector.payment_info.return_value = (
            PaymentInfo.from_provider({"id": "pay_abc123", "amount": 199.99, "currency": "UAH"}),
            200,
        )
        assert main(["info", "1042"]) == 0

        connector.payment_info.assert_called_once_with("1042")
        printed = json.loads(capsys.readouterr().out)
        assert printed["status_code"] == 200
        assert printed["response"]["id"] == "pay_abc123"

    def test_info_not_found(self, connector, capsys):
        connector.payment_info.return_value = (None, 404)

        assert main(["info", "1042"]) == 1
        assert json.loads(capsys.readouterr().out) == {"status_code": 404, "response": None}

    def test_cancel(self, connector):
        connector.payment_cancel.return_value = ProviderResponse({"is_success": True}, 200)

        assert main(["cancel", "1042", "--amount", "199.99", "--currency", "UAH"]) == 0
        connector.payment_cancel.assert_called_once_with("1042", Decimal("199.99"), "UAH")

    def test_refund_rejected(self, connector):
        connector.payment_refund.return_value = ProviderResponse({"code": "invalid_amount"}, 400)
        assert main(["refund", "1042", "-a", "500", "-c", "UAH"]) == 1

    def test_transport_failure(self, connector):
        connector.payment_info.side_effect = PaymentGatewayError("Exception: timeout")
        assert main(["info", "1042"]) == 2

    def test_missing_credentials(self, connector):
        with patch.dict(os.environ, {"ROZETKAPAY_LOGIN": ""}):
            assert main(["info", "1042"]) == 1
        connector.payment_info.assert_not_called()
