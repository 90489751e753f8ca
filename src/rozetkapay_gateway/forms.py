"""Redirect form sending the shopper to the RozetkaPay hosted checkout page."""

import html
import logging
from typing import Dict, Optional
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from pydantic import BaseModel, Field

from .connectors.base import ConnectorBase, PaymentRequest

logger = logging.getLogger(__name__)

REDIRECT_METHOD = "get"


class RedirectFormError(Exception):
    """The provider did not hand back a hosted page to redirect to."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RedirectForm(BaseModel):
    action: str
    method: str = REDIRECT_METHOD
    data: Dict[str, str] = Field(default_factory=dict)


def build_redirect_form(connector: ConnectorBase, request: PaymentRequest) -> RedirectForm:
    """Create the hosted payment and describe the form that leads to it.

    Raises:
        RedirectFormError: If the create call did not answer exactly 200 or
            the answer has no ``action.value``.
        PaymentGatewayError: On transport failure.
    """
    created = connector.payment_create(request)
    response, status_code = created
    if not created.ok:
        logger.error(f"Payment create for {request.external_id} answered {status_code}")
        raise RedirectFormError("RozetkaPay rejected the payment", status_code)

    action = response.get("action") if isinstance(response, dict) else None
    target = action.get("value") if isinstance(action, dict) else None
    if not target:
        logger.error(f"Payment create for {request.external_id} returned no redirect target")
        raise RedirectFormError("RozetkaPay returned no redirect target", status_code)

    # A GET submission replaces the action's query string with the form
    # fields, so the query has to travel as hidden inputs.
    parts = urlsplit(str(target))
    data = dict(parse_qsl(parts.query, keep_blank_values=True))
    action_url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
    return RedirectForm(action=action_url, data=data)


def render_redirect_form(form: RedirectForm) -> str:
    """Render an auto-submitting HTML page for the redirect form."""
    inputs = "\n".join(
        f'      <input type="hidden" name="{html.escape(name)}" value="{html.escape(value)}">'
        for name, value in form.data.items()
    )
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Redirecting to RozetkaPay</title>
  </head>
  <body onload="document.forms['rozetkapay-redirect'].submit()">
    <form id="rozetkapay-redirect" name="rozetkapay-redirect" action="{html.escape(form.action)}" method="{html.escape(form.method)}">
{inputs}
      <p>Please wait while you are redirected to the payment page.</p>
      <button type="submit">Proceed to RozetkaPay</button>
    </form>
  </body>
</html>
"""
