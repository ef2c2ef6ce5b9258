"""
Stripe Checkout — hosted card payment for the amount due this period.

create_checkout_session: POST /v1/checkout/sessions (form-encoded, secret key auth)
verify_webhook: checks the Stripe-Signature header (t=<ts>,v1=<hmac>) before
trusting a webhook body.
"""

import hashlib
import hmac
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

from .config import Settings

logger = logging.getLogger(__name__)

STRIPE_CHECKOUT_URL = "https://api.stripe.com/v1/checkout/sessions"
WEBHOOK_TOLERANCE_SECONDS = 300


class PaymentError(Exception):
    """Checkout could not be created, or a webhook failed verification."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def to_minor_units(amount: float) -> int:
    """Dollars → cents."""
    return int(round(amount * 100))


def create_checkout_session(
    amount: float,
    description: str,
    settings: Settings,
    customer_email: Optional[str] = None,
) -> dict:
    """
    Creates a one-off Checkout session. Returns {"id", "url"}.

    Raises PaymentError (500) if Stripe is not configured, (502) if Stripe rejects the call.
    """
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentError("STRIPE_SECRET_KEY not configured", status_code=500)
    if amount <= 0:
        raise PaymentError("Nothing to charge, amount due is 0", status_code=400)

    fields = {
        "mode": "payment",
        "success_url": settings.CHECKOUT_SUCCESS_URL,
        "cancel_url": settings.CHECKOUT_CANCEL_URL,
        "line_items[0][quantity]": "1",
        "line_items[0][price_data][currency]": settings.CURRENCY,
        "line_items[0][price_data][unit_amount]": str(to_minor_units(amount)),
        "line_items[0][price_data][product_data][name]": description,
    }
    if customer_email:
        fields["customer_email"] = customer_email

    req = urllib.request.Request(
        STRIPE_CHECKOUT_URL,
        data=urllib.parse.urlencode(fields).encode("utf-8"),
        headers={
            "Authorization": f"Bearer {settings.STRIPE_SECRET_KEY}",
            "Content-Type": "application/x-www-form-urlencoded",
        },
        method="POST",
    )

    try:
        with urllib.request.urlopen(req, timeout=30) as response:
            session = json.loads(response.read())
    except urllib.error.HTTPError as e:
        error_body = e.read().decode()
        raise PaymentError(f"Stripe API error: {error_body}", status_code=502) from e
    except urllib.error.URLError as e:
        raise PaymentError(f"Stripe API unreachable: {e.reason}", status_code=502) from e

    logger.info("Checkout session created: %s (%d cents)", session.get("id"), to_minor_units(amount))
    return {"id": session.get("id"), "url": session.get("url")}


def _parse_signature_header(header: str) -> tuple[Optional[int], list[str]]:
    timestamp = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                return None, []
        elif key == "v1":
            signatures.append(value)
    return timestamp, signatures


def compute_signature(payload: bytes, timestamp: int, secret: str) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_webhook(
    payload: bytes,
    signature_header: Optional[str],
    secret: str,
    tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> dict:
    """Verifies a Stripe webhook and returns the parsed event. Raises PaymentError on any mismatch."""
    if not secret:
        raise PaymentError("STRIPE_WEBHOOK_SECRET not configured", status_code=500)
    if not signature_header:
        raise PaymentError("Missing Stripe-Signature header")

    timestamp, signatures = _parse_signature_header(signature_header)
    if timestamp is None or not signatures:
        raise PaymentError("Malformed Stripe-Signature header")

    expected = compute_signature(payload, timestamp, secret)
    if not any(hmac.compare_digest(expected, sig) for sig in signatures):
        raise PaymentError("Webhook signature mismatch")

    now = time.time() if now is None else now
    if abs(now - timestamp) > tolerance:
        raise PaymentError("Webhook timestamp outside tolerance")

    try:
        event = json.loads(payload)
    except ValueError as e:
        raise PaymentError("Webhook body is not valid JSON") from e
    if not isinstance(event, dict):
        raise PaymentError("Webhook body is not a JSON object")
    return event
