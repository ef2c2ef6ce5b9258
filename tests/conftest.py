"""
Shared test fixtures — test client, recording mailer, sample submission.
"""

import os
import pytest
from fastapi.testclient import TestClient

# Set email/payment settings before importing app modules
os.environ["FROM_EMAIL"] = "Afterschool <no-reply@test.example>"
os.environ["ADMIN_EMAILS"] = "staff@test.example,office@test.example"
os.environ["PAYMENT_RECIPIENT"] = "payments@test.example"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

from afterschool.mailer import Mailer, MailerError, get_mailer_handle
from afterschool.main import app


class RecordingMailer(Mailer):
    """Captures sends instead of delivering. Set fail_for to make a recipient fail."""
    provider = "fake"

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, sender, to, message):
        if self.fail_for.intersection(to):
            raise MailerError(f"rejected: {', '.join(to)}")
        self.sent.append({"from": sender, "to": list(to), "message": message})
        return f"msg-{len(self.sent)}"


class FakeHandle:
    def __init__(self, mailer):
        self.mailer = mailer

    def get(self):
        return self.mailer


@pytest.fixture
def mailer():
    """Recording mailer wired into the app for the duration of a test."""
    recorder = RecordingMailer()
    app.dependency_overrides[get_mailer_handle] = lambda: FakeHandle(recorder)
    yield recorder
    app.dependency_overrides.pop(get_mailer_handle, None)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def submission_payload():
    """Complete submission as posted by the registration form."""
    return {
        "form": {
            "childName": "Alice Johnson",
            "childDateOfBirth": "2017-04-02",
            "childGrade": "2nd Grade",
            "parentName": "Mary Johnson",
            "parentAddress": "12 Oak St, Albertson NY",
            "email": "mary@example.com",
            "phoneFull": "+1 5165550100",
            "emergencyContact": "John Doe",
            "emergencyPhoneFull": "+1 5165550199",
            "allergies": "",
            "specialInstructions": "Pick up by aunt on Fridays",
            "paymentMethod": "zelle",
            "paymentNotes": "",
        },
        "pricingInput": {
            "daysPerWeek": 3,
            "timeBlock": "4-6",
            "school": "Other",
            "frequency": "weekly",
            "extensionsEnabled": False,
            "abacusEnabled": False,
            "isCarrington": False,
        },
        "pricing": {
            "baseWeekly": 225,
            "addOnWeekly": 0,
            "abacusWeekly": 0,
            "schoolDiscountWeekly": 0,
            "prepayDiscountWeekly": 0,
            "finalWeekly": 225,
            "periodWeeks": 1,
            "registrationFee": 0,
            "totalForPeriod": 225,
        },
        "payment": {
            "zellePayerName": "Mary J",
            "zelleConfirmation": "ABC12345",
        },
    }
