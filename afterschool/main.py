from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .mailer import MailerHandle
from .routers import payments, pricing, registration

logger = logging.getLogger("afterschool")

app = FastAPI(
    title="Afterschool Registration",
    description="Registration, live pricing and confirmation emails for the afterschool program",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Stripe-Signature"],
)

# Email client is built on first send and lives as long as the app
app.state.mailer_handle = MailerHandle(settings)

# API routes
app.include_router(pricing.router, prefix="/api")
app.include_router(registration.router, prefix="/api")
app.include_router(payments.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "afterschool-registration"}


@app.on_event("startup")
def check_email_config():
    """Warn early about missing email settings; sends will fail until fixed."""
    if not settings.FROM_EMAIL:
        logger.warning("FROM_EMAIL is not set. Registration emails will be rejected.")
    if settings.EMAIL_PROVIDER.lower() == "resend" and not settings.RESEND_API_KEY:
        logger.warning('EMAIL_PROVIDER is set to "resend" but RESEND_API_KEY is missing. Email sending will fail.')
