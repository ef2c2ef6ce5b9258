"""
Stripe Checkout endpoints.

POST /api/payments/checkout: hosted checkout for the amount due this period
POST /api/payments/webhook: signed Stripe events
"""

import logging

from fastapi import APIRouter, Request

from ..config import settings
from ..payments import PaymentError, create_checkout_session, verify_webhook
from ..pricing_engine import compute_price
from ..schemas import CheckoutRequest
from .registration import error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/checkout")
def create_checkout(body: CheckoutRequest):
    # Amount charged is always priced server-side
    breakdown = compute_price(body.pricing_input.to_config())
    description = f"Afterschool - {body.child_name or 'Child'} ({body.pricing_input.frequency.value})"

    try:
        session = create_checkout_session(
            breakdown.total_for_period,
            description,
            settings,
            customer_email=body.customer_email,
        )
    except PaymentError as e:
        logger.error(f"Checkout failed: {e}")
        return error_response(e.status_code, str(e))

    return {"ok": True, "id": session["id"], "url": session["url"], "amount": breakdown.total_for_period}


@router.post("/webhook")
async def stripe_webhook(request: Request):
    payload = await request.body()
    try:
        event = verify_webhook(
            payload,
            request.headers.get("stripe-signature"),
            settings.STRIPE_WEBHOOK_SECRET,
        )
    except PaymentError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        return error_response(e.status_code, str(e))

    event_type = event.get("type", "")
    if event_type == "checkout.session.completed":
        session = (event.get("data") or {}).get("object") or {}
        logger.info(
            "Checkout completed: %s (%s %s)",
            session.get("id"), session.get("amount_total"), session.get("currency"),
        )
    else:
        logger.info("Ignoring Stripe event: %s", event_type)

    return {"ok": True, "received": event_type}
