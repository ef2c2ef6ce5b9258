"""
HTTP API tests — live quote, registration emails, test email, Stripe endpoints.

Email delivery goes through the recording mailer fixture; Stripe calls are patched.
"""

import json
import time
from unittest.mock import MagicMock, patch

from afterschool.config import Settings, settings
from afterschool.mailer import MailerError, SmtpMailer, get_mailer_handle
from afterschool.main import app
from afterschool.payments import compute_signature


class UnconfiguredHandle:
    def get(self):
        raise MailerError("RESEND_API_KEY missing")


class SmtpHandle:
    def __init__(self):
        self.mailer = SmtpMailer("smtp.test", 587, "user", "pass")

    def get(self):
        return self.mailer


# ============================================================
# Health + pricing
# ============================================================

def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_pricing_options(client):
    resp = client.get("/api/pricing/options")
    assert resp.status_code == 200
    data = resp.json()
    assert data["baseWeekly"]["1"] == 75
    assert data["periodWeeks"]["year"] == 40


def test_quote_scenario(client):
    resp = client.post("/api/pricing/quote", json={
        "daysPerWeek": 4, "timeBlock": "4-6", "school": "Searingtown", "frequency": "weekly",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["schoolDiscountWeekly"] == 120
    assert data["finalWeekly"] == 180
    assert data["totalForPeriod"] == 180


def test_quote_defaults_optional_flags(client):
    resp = client.post("/api/pricing/quote", json={"daysPerWeek": 2, "frequency": "6months"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["prepayDiscountWeekly"] == 0
    assert data["periodWeeks"] == 24
    assert data["registrationFee"] == 0


def test_quote_rejects_out_of_range_days(client):
    resp = client.post("/api/pricing/quote", json={"daysPerWeek": 6})
    assert resp.status_code == 422


def test_quote_rejects_unknown_enum(client):
    resp = client.post("/api/pricing/quote", json={"daysPerWeek": 3, "frequency": "biweekly"})
    assert resp.status_code == 422


# ============================================================
# /api/send-email
# ============================================================

def test_send_email_admin_and_parent(client, mailer, submission_payload):
    resp = client.post("/api/send-email", json=submission_payload)
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "id": "msg-1"}

    assert len(mailer.sent) == 2
    admin, parent = mailer.sent
    assert admin["to"] == ["staff@test.example", "office@test.example"]
    assert admin["from"] == settings.FROM_EMAIL
    assert admin["message"].subject == "New Afterschool Registration - Alice Johnson (weekly)"
    assert parent["to"] == ["mary@example.com"]
    assert parent["message"].subject == "We received your registration"


def test_send_email_without_parent_address(client, mailer, submission_payload):
    submission_payload["form"]["email"] = ""
    resp = client.post("/api/send-email", json=submission_payload)
    assert resp.status_code == 200
    assert len(mailer.sent) == 1


def test_send_email_renders_submitted_pricing_as_is(client, mailer, submission_payload):
    submission_payload["pricing"]["finalWeekly"] = 199.99
    client.post("/api/send-email", json=submission_payload)
    assert "Final weekly: $199.99" in mailer.sent[0]["message"].text


def test_send_email_fills_missing_pricing(client, mailer, submission_payload):
    del submission_payload["pricing"]
    submission_payload["pricingInput"].update({"abacusEnabled": True, "frequency": "monthly"})
    resp = client.post("/api/send-email", json=submission_payload)
    assert resp.status_code == 200
    text = mailer.sent[0]["message"].text
    # (225 - 10) + 87.50 = 302.50/week; 4 weeks + 90 fee
    assert "Final weekly: $302.50" in text
    assert "Total for period: $1300.00" in text


def test_parent_failure_does_not_fail_request(client, mailer, submission_payload):
    mailer.fail_for.add("mary@example.com")
    resp = client.post("/api/send-email", json=submission_payload)
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert len(mailer.sent) == 1


def test_admin_failure_is_500(client, mailer, submission_payload):
    mailer.fail_for.add("staff@test.example")
    resp = client.post("/api/send-email", json=submission_payload)
    assert resp.status_code == 500
    assert resp.json()["ok"] is False
    assert "rejected" in resp.json()["error"]
    assert mailer.sent == []


def test_missing_from_email(client, mailer, submission_payload, monkeypatch):
    monkeypatch.setattr(settings, "FROM_EMAIL", "")
    resp = client.post("/api/send-email", json=submission_payload)
    assert resp.status_code == 500
    assert resp.json() == {"ok": False, "error": "FROM_EMAIL not set in environment"}
    assert mailer.sent == []


def test_provider_not_configured(client, submission_payload):
    app.dependency_overrides[get_mailer_handle] = lambda: UnconfiguredHandle()
    try:
        resp = client.post("/api/send-email", json=submission_payload)
    finally:
        app.dependency_overrides.pop(get_mailer_handle, None)
    assert resp.status_code == 500
    assert resp.json()["error"] == "RESEND_API_KEY missing"


def test_send_email_smtp_header_line_breaks(client, submission_payload):
    submission_payload["form"]["childName"] = "Alice\r\nBcc: evil@x.test"
    submission_payload["form"]["email"] = "mary@example.com\r\nBcc: evil@x.test"
    conn = MagicMock()
    conn.__enter__.return_value = conn
    app.dependency_overrides[get_mailer_handle] = lambda: SmtpHandle()
    try:
        with patch("afterschool.mailer.smtplib.SMTP", return_value=conn):
            resp = client.post("/api/send-email", json=submission_payload)
    finally:
        app.dependency_overrides.pop(get_mailer_handle, None)

    # Staff email goes out with a one-line subject; the bad parent address is skipped
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    conn.send_message.assert_called_once()
    sent = conn.send_message.call_args[0][0]
    assert sent["Subject"] == "New Afterschool Registration - Alice Bcc: evil@x.test (weekly)"
    assert sent["Bcc"] is None


def test_send_email_rejects_bad_pricing_input(client, mailer, submission_payload):
    submission_payload["pricingInput"]["timeBlock"] = "5-9"
    resp = client.post("/api/send-email", json=submission_payload)
    assert resp.status_code == 422
    assert mailer.sent == []


# ============================================================
# /api/test-email
# ============================================================

def test_test_email(client, mailer):
    resp = client.post("/api/test-email", json={"to": "me@test.example"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "id": "msg-1"}
    assert mailer.sent[0]["message"].subject == "Test email from Afterschool app"


def test_test_email_requires_recipient(client, mailer):
    resp = client.post("/api/test-email", json={})
    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "error": 'Missing "to"'}


# ============================================================
# Stripe
# ============================================================

def test_checkout_prices_server_side(client):
    body = {
        "pricingInput": {"daysPerWeek": 3, "school": "Searingtown", "frequency": "3months"},
        "customerEmail": "mary@example.com",
        "childName": "Alice",
    }
    with patch("afterschool.routers.payments.create_checkout_session",
               return_value={"id": "cs_1", "url": "https://checkout.test/cs_1"}) as create:
        resp = client.post("/api/payments/checkout", json=body)

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "id": "cs_1", "url": "https://checkout.test/cs_1", "amount": 1320.0}
    amount, description = create.call_args[0][:2]
    assert amount == 1320.0  # (225 - 90 - 25) * 12
    assert description == "Afterschool - Alice (3months)"
    assert create.call_args.kwargs["customer_email"] == "mary@example.com"


def test_webhook_accepts_signed_event(client):
    payload = json.dumps({"type": "checkout.session.completed", "data": {"object": {"id": "cs_1"}}}).encode()
    ts = int(time.time())
    header = f"t={ts},v1={compute_signature(payload, ts, settings.STRIPE_WEBHOOK_SECRET)}"
    resp = client.post("/api/payments/webhook", content=payload, headers={"Stripe-Signature": header})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "received": "checkout.session.completed"}


def test_webhook_rejects_bad_signature(client):
    resp = client.post(
        "/api/payments/webhook",
        content=b'{"type": "checkout.session.completed"}',
        headers={"Stripe-Signature": f"t={int(time.time())},v1=deadbeef"},
    )
    assert resp.status_code == 400
    assert resp.json()["ok"] is False


def test_webhook_tolerates_null_data(client):
    payload = json.dumps({"type": "checkout.session.completed", "data": None}).encode()
    ts = int(time.time())
    header = f"t={ts},v1={compute_signature(payload, ts, settings.STRIPE_WEBHOOK_SECRET)}"
    resp = client.post("/api/payments/webhook", content=payload, headers={"Stripe-Signature": header})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "received": "checkout.session.completed"}


def test_webhook_rejects_signed_array(client):
    payload = b'[]'
    ts = int(time.time())
    header = f"t={ts},v1={compute_signature(payload, ts, settings.STRIPE_WEBHOOK_SECRET)}"
    resp = client.post("/api/payments/webhook", content=payload, headers={"Stripe-Signature": header})
    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "error": "Webhook body is not a JSON object"}


# ============================================================
# CORS
# ============================================================

def test_cors_origins_parsing():
    assert Settings(CORS_ORIGINS="https://a.test, https://b.test,").cors_origins() == [
        "https://a.test", "https://b.test",
    ]
    assert Settings(CORS_ORIGINS="*").cors_origins() == ["*"]


def test_cors_default_allows_any_origin():
    assert Settings.model_fields["CORS_ORIGINS"].default == "*"


def test_cors_preflight(client):
    resp = client.options("/api/pricing/quote", headers={
        "Origin": "https://form.test",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "Content-Type",
    })
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "POST" in resp.headers["access-control-allow-methods"]
