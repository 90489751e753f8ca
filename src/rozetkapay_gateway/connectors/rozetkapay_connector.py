import base64
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from ..config import GatewayConfig
from .base import (
    ConnectorBase,
    PaymentGatewayError,
    PaymentInfo,
    PaymentRequest,
    ProviderResponse,
    build_external_id,
)

logger = logging.getLogger(__name__)


class RozetkaPayConnector(ConnectorBase):
    """
    HTTP client for the RozetkaPay payments API (hosted checkout mode).

    Every call authenticates with HTTP Basic credentials from GatewayConfig.
    4xx/5xx answers come back as ProviderResponse data for the caller to
    branch on; only transport failures raise PaymentGatewayError.
    """

    def __init__(self, config: GatewayConfig, http_client: Optional[httpx.Client] = None):
        self.config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "RozetkaPayConnector":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def basic_auth_headers(self) -> Dict[str, str]:
        token = base64.b64encode(
            f"{self.config.login}:{self.config.password}".encode("utf-8")
        ).decode("ascii")
        return {
            "Content-Type": "application/json",
            "Authorization": f"Basic {token}",
        }

    def _endpoint(self, action: str) -> str:
        return f"payments/{self.config.api_version}/{action}"

    def do_request(
        self,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        method: str = "GET",
    ) -> ProviderResponse:
        """Send a request to ``base_url + path`` and decode the JSON answer.

        Raises:
            PaymentGatewayError: On connection errors, timeouts, or a body
                that is not valid JSON.
        """
        url = self.config.base_url + path
        method = method.upper()
        request_options: Dict[str, Any] = {
            "headers": self.basic_auth_headers(),
            "auth": (self.config.login, self.config.password),
        }
        if data:
            request_options["content"] = json.dumps(data, separators=(",", ":"), default=str)

        try:
            response = self._client.request(method, url, **request_options)
        except httpx.HTTPError as e:
            logger.error(f"RozetkaPay {method} {path} failed: {type(e).__name__}")
            raise PaymentGatewayError(f"Exception: {e}") from e

        if not response.content.strip():
            return ProviderResponse(None, response.status_code)
        try:
            decoded = response.json(parse_float=Decimal)
        except ValueError as e:
            logger.error(
                f"RozetkaPay {method} {path} returned a non-JSON body "
                f"(status {response.status_code})"
            )
            raise PaymentGatewayError(f"Exception: invalid JSON in response: {e}") from e

        return ProviderResponse(decoded, response.status_code)

    def payment_create(self, request: PaymentRequest) -> ProviderResponse:
        return self.do_request(self._endpoint("new"), request.to_provider_payload(), "POST")

    def payment_info(self, order_id) -> Tuple[Optional[PaymentInfo], int]:
        """Look up the payment for an order.

        Returns ``(None, status_code)`` when the provider answered with an empty
        body and a non-200 status; otherwise the normalized PaymentInfo.
        """
        external_id = f"{self.config.info_id_prefix}{order_id}"
        path = f"{self._endpoint('info')}?{urlencode({'external_id': external_id})}"
        data, status_code = self.do_request(path)

        if not data and status_code != 200:
            return None, status_code

        try:
            return PaymentInfo.from_provider(data), status_code
        except ValidationError as e:
            logger.error(f"Malformed info response for order {order_id}")
            raise PaymentGatewayError(f"Exception: malformed info response: {e}") from e

    def payment_cancel(self, order_id, amount: Decimal, currency: str) -> ProviderResponse:
        return self.do_request(
            self._endpoint("cancel"),
            self._operation_body(order_id, amount, currency),
            "POST",
        )

    def payment_refund(self, order_id, amount: Decimal, currency: str) -> ProviderResponse:
        return self.do_request(
            self._endpoint("refund"),
            self._operation_body(order_id, amount, currency),
            "POST",
        )

    @staticmethod
    def _operation_body(order_id, amount: Decimal, currency: str) -> Dict[str, Any]:
        return {
            "external_id": build_external_id(order_id),
            "amount": str(amount),
            "currency": currency,
        }

    def health_check(self) -> Dict[str, Any]:
        return {"ok": True, "provider": "rozetkapay", "base_url": self.config.base_url}
