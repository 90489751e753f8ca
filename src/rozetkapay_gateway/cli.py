#!/usr/bin/env python3
"""Command-line access to the RozetkaPay payment operations.

Credentials come from ROZETKAPAY_LOGIN / ROZETKAPAY_PASSWORD.

Usage:
    rozetkapay info 1042
    rozetkapay cancel 1042 --amount 199.99 --currency UAH
    rozetkapay refund 1042 --amount 50.00 --currency UAH
"""

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional

from .config import GatewayConfig
from .connectors import PaymentGatewayError, RozetkaPayConnector

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_amount(value: str) -> Decimal:
    """argparse type for decimal amounts."""
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid amount: {value}")
    if not amount.is_finite() or amount <= 0:
        raise argparse.ArgumentTypeError(f"Amount must be a positive number: {value}")
    return amount


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rozetkapay",
        description="Inspect, cancel and refund RozetkaPay payments by order id.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    info_parser = subparsers.add_parser("info", help="Show the provider's payment info")
    info_parser.add_argument("order_id", help="Local order id")

    for name, help_text in (("cancel", "Cancel a payment"), ("refund", "Refund a payment")):
        op_parser = subparsers.add_parser(name, help=help_text)
        op_parser.add_argument("order_id", help="Local order id")
        op_parser.add_argument("--amount", "-a", required=True, type=parse_amount)
        op_parser.add_argument("--currency", "-c", required=True, help="Three-letter currency code")

    return parser


def main(args: Optional[list] = None) -> int:
    """Entry point. Exit code 0 on HTTP 200, 1 otherwise, 2 on transport failure."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    try:
        config = GatewayConfig.from_env()
    except ValueError as e:
        logger.error(str(e))
        return 1

    with RozetkaPayConnector(config) as connector:
        try:
            if parsed_args.command == "info":
                info, status_code = connector.payment_info(parsed_args.order_id)
                data = info.model_dump() if info is not None else None
            elif parsed_args.command == "cancel":
                data, status_code = connector.payment_cancel(
                    parsed_args.order_id, parsed_args.amount, parsed_args.currency
                )
            else:
                data, status_code = connector.payment_refund(
                    parsed_args.order_id, parsed_args.amount, parsed_args.currency
                )
        except PaymentGatewayError as e:
            logger.error(str(e))
            return 2

    print(json.dumps({"status_code": status_code, "response": data}, indent=2, default=str))
    if status_code != 200:
        logger.warning(f"RozetkaPay answered {status_code} for {parsed_args.command}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
