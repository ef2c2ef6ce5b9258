"""
Registration submission — emails staff, then confirms to the parent.

POST /api/send-email: {form, pricingInput, pricing?, payment?}
POST /api/test-email: {to}; quick provider check

The staff email must succeed. The parent confirmation is best-effort:
a failure is logged and the request still succeeds.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..config import settings
from ..emails import build_admin_email, build_parent_email, build_test_email
from ..mailer import MailerError, MailerHandle, get_mailer_handle
from ..pricing_engine import compute_price
from ..schemas import EmailTestRequest, RegistrationSubmission

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


@router.post("/send-email")
def send_registration(
    submission: RegistrationSubmission,
    handle: MailerHandle = Depends(get_mailer_handle),
):
    if not settings.FROM_EMAIL:
        return error_response(500, "FROM_EMAIL not set in environment")

    try:
        mailer = handle.get()
    except MailerError as e:
        return error_response(500, str(e))

    # Pricing from the form is rendered as-is; only fill it when missing
    if submission.pricing is None and submission.pricing_input is not None:
        submission.pricing = compute_price(submission.pricing_input.to_config()).to_dict()

    recipients = settings.admin_recipients()
    if not recipients:
        return error_response(500, "ADMIN_EMAILS not set in environment")

    admin_email = build_admin_email(submission, settings)
    try:
        message_id = mailer.send(settings.FROM_EMAIL, recipients, admin_email)
    except MailerError as e:
        logger.exception("Registration email failed")
        return error_response(500, str(e))
    logger.info(
        "Registration email sent for %s to %d recipient(s) via %s (%s)",
        submission.form.child_name or "Child", len(recipients), mailer.provider, message_id,
    )

    parent_address = submission.form.email
    if parent_address:
        try:
            mailer.send(settings.FROM_EMAIL, [parent_address], build_parent_email(submission, settings))
        except MailerError as e:
            logger.warning(f"Parent confirmation not sent: {e}")

    return {"ok": True, "id": message_id}


@router.post("/test-email")
def send_test_email(
    body: EmailTestRequest,
    handle: MailerHandle = Depends(get_mailer_handle),
):
    if not body.to:
        return error_response(400, 'Missing "to"')
    if not settings.FROM_EMAIL:
        return error_response(500, "FROM_EMAIL not set in environment")

    try:
        mailer = handle.get()
        message_id = mailer.send(settings.FROM_EMAIL, [body.to], build_test_email())
    except MailerError as e:
        logger.exception("Test email failed")
        return error_response(500, str(e))

    return {"ok": True, "id": message_id}
