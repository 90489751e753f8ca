"""Gateway configuration for the RozetkaPay connector."""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

API_BASE_URL = "https://api.rozetkapay.com/api/"
API_VERSION = "v1"

# Info lookups have always prepended an extra "1" to the order id, while
# create/cancel/refund use "order_<id>". Kept as the default until the
# provider confirms which form it expects.
DEFAULT_INFO_ID_PREFIX = "order_1"


class GatewayConfig(BaseModel):
    """Credentials and transport settings for the RozetkaPay API."""
    login: str = Field(..., description="Login for authorization in the RozetkaPay API")
    password: str = Field(..., description="Password for authorization in the RozetkaPay API")
    base_url: str = Field(default=API_BASE_URL)
    api_version: str = Field(default=API_VERSION)
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    info_id_prefix: str = Field(default=DEFAULT_INFO_ID_PREFIX)

    model_config = {"frozen": True}

    @field_validator("login", "password")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError(
                "ROZETKAPAY_LOGIN and ROZETKAPAY_PASSWORD must be provided "
                "either as arguments or environment variables"
            )
        return value

    @field_validator("base_url")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else value + "/"

    @classmethod
    def from_env(
        cls,
        login: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "GatewayConfig":
        """Build the configuration from ROZETKAPAY_* environment variables.

        Explicit arguments take precedence over the environment.

        Raises:
            ValueError: If login or password is missing.
        """
        values = {
            "login": login or os.getenv("ROZETKAPAY_LOGIN", ""),
            "password": password or os.getenv("ROZETKAPAY_PASSWORD", ""),
            "base_url": os.getenv("ROZETKAPAY_BASE_URL") or API_BASE_URL,
            "info_id_prefix": os.getenv("ROZETKAPAY_INFO_ID_PREFIX") or DEFAULT_INFO_ID_PREFIX,
        }
        timeout = os.getenv("ROZETKAPAY_TIMEOUT")
        if timeout:
            values["timeout"] = float(timeout)
        return cls(**values)
