from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ORGANIZATION_NAME: str = "Exceed Learning Center"

    # Email: EMAIL_PROVIDER=resend|smtp (smtp also chosen whenever SMTP_HOST is set)
    EMAIL_PROVIDER: str = ""
    FROM_EMAIL: str = ""  # REQUIRED to send, e.g. "Afterschool <no-reply@yourdomain.com>"
    ADMIN_EMAILS: str = "info@example.com"  # comma-separated staff recipients
    RESEND_API_KEY: str = ""
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_SECURE: bool = False

    # Offline payments
    PAYMENT_RECIPIENT: str = "payments@example.com"  # Zelle recipient
    CHECK_PAYEE: str = "Exceed Learning Center"

    # Stripe Checkout (optional)
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    CHECKOUT_SUCCESS_URL: str = "http://localhost:5173/?payment=success"
    CHECKOUT_CANCEL_URL: str = "http://localhost:5173/?payment=cancelled"
    CURRENCY: str = "usd"

    CORS_ORIGINS: str = "*"

    class Config:
        env_file = ".env"

    def admin_recipients(self) -> list[str]:
        return [addr.strip() for addr in self.ADMIN_EMAILS.split(",") if addr.strip()]

    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def smtp_enabled(self) -> bool:
        """SMTP wins when selected explicitly or when a host is configured."""
        return self.EMAIL_PROVIDER.lower() == "smtp" or bool(self.SMTP_HOST)


settings = Settings()
