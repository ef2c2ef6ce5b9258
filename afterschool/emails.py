"""
Registration emails — staff notification and parent confirmation.

Input: RegistrationSubmission (form + pricingInput + pricing + payment)
Output: EmailMessage (subject, plain text, HTML)

Pricing is rendered exactly as submitted. Money fields always show 2 decimals.
"""

from dataclasses import dataclass
from html import escape

from .config import Settings
from .pricing_engine import format_money
from .schemas import RegistrationSubmission

PARENT_SUBJECT = "We received your registration"

PAYMENT_METHOD_NAMES = {
    "zelle": "Zelle",
    "stripe": "Stripe (Paid)",
    "credit-card": "Credit Card",
    "cash": "Cash",
    "check": "Check",
}

PRE_STYLE = (
    "font: 14px/1.5 ui-monospace, SFMono-Regular, Menlo, Monaco, Consolas, "
    "'Liberation Mono', 'Courier New', monospace; white-space: pre-wrap;"
)


@dataclass
class EmailMessage:
    subject: str
    text: str
    html: str


def _v(value, default: str = "") -> str:
    """Display value for an optional field."""
    if value is None or value == "":
        return default
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _one_line(value: str) -> str:
    """Collapses line breaks so the value is safe in a mail header."""
    return " ".join(value.split())


def _money(pricing: dict, key: str) -> str:
    value = pricing.get(key)
    try:
        return format_money(value)
    except (TypeError, ValueError):
        # Client-supplied pricing is not validated; show it verbatim
        return str(value)


def mask_card_number(card_number) -> str:
    """Last 4 digits only."""
    digits = "".join(ch for ch in str(card_number or "") if ch.isdigit())
    if not digits:
        return "Not provided"
    return f"**** **** **** {digits[-4:]}"


def schedule_lines(submission: RegistrationSubmission) -> list[str]:
    """Schedule summary, extension hours, abacus and waiver lines."""
    pi = submission.pricing_input
    if pi is None:
        return ["Schedule: not provided"]
    block = _v(pi.time_block)
    return [
        f"Schedule: {pi.days_per_week} days, {block}, {_v(pi.school)}, {_v(pi.frequency)}",
        f"Extension hours: {f'Enabled ({block})' if pi.extensions_enabled else 'Disabled'}",
        f"Abacus: {'Enabled' if pi.abacus_enabled else 'Disabled'}",
        f"Carrington waiver: {'Yes' if pi.is_carrington else 'No'}",
    ]


def pricing_lines(pricing: dict) -> list[str]:
    return [
        f"Base weekly: ${_money(pricing, 'baseWeekly')}",
        f"Add-ons weekly: ${_money(pricing, 'addOnWeekly')}",
        f"Abacus weekly: ${_money(pricing, 'abacusWeekly')}",
        f"Registration fee (one-time): ${_money(pricing, 'registrationFee')}",
        f"School discount: -${_money(pricing, 'schoolDiscountWeekly')}",
        f"Prepay discount: -${_money(pricing, 'prepayDiscountWeekly')}",
        f"Final weekly: ${_money(pricing, 'finalWeekly')}",
        f"Weeks in period: {_v(pricing.get('periodWeeks'))}",
        f"Total for period: ${_money(pricing, 'totalForPeriod')}",
    ]


def payment_lines(submission: RegistrationSubmission, settings: Settings) -> list[str]:
    """
    Payment section for the staff email, keyed on form.paymentMethod.

    Card security codes are never included; card numbers are masked.
    """
    form = submission.form
    payment = submission.payment
    pricing = submission.pricing or {}
    method = form.payment_method
    amount = f"${_money(pricing, 'totalForPeriod')} USD"

    lines = [f"Payment method: {PAYMENT_METHOD_NAMES.get(method, method or 'Not specified')}"]

    if method == "zelle":
        lines += [
            "Zelle Details:",
            f"  Recipient: {settings.PAYMENT_RECIPIENT}",
            f"  Amount: {amount}",
            f"  Payer: {_v(payment.zelle_payer_name, 'Not provided')}",
            f"  Confirmation: {_v(payment.zelle_confirmation, 'Not provided')}",
        ]
    elif method == "stripe":
        lines += [
            "Stripe Payment:",
            f"  Amount: {amount}",
            f"  Reference: {_v(payment.payment_reference, 'Not available')}",
        ]
    elif method == "credit-card":
        lines += [
            "Credit Card Details:",
            f"  Card Number: {mask_card_number(payment.card_number)}",
            f"  Expiration: {_v(payment.card_expiration, 'Not provided')}",
            f"  ZIP Code: {_v(payment.card_zip_code, 'Not provided')}",
        ]
    elif method == "cash":
        lines.append(f"Cash Payment: {amount}")
    elif method == "check":
        lines += [
            f"Check Payment: {amount}",
            f"  Make payable to: {settings.CHECK_PAYEE}",
        ]

    lines.append(f"Payment Notes: {_v(form.payment_notes, 'None')}")
    return lines


def build_admin_email(submission: RegistrationSubmission, settings: Settings) -> EmailMessage:
    """Staff notification: every submitted field, one per line."""
    form = submission.form
    pricing = submission.pricing or {}
    frequency = _v(submission.pricing_input.frequency) if submission.pricing_input else ""

    subject = _one_line(f"New Afterschool Registration - {_v(form.child_name, 'Child')} ({frequency})")

    lines = [
        f"Child: {_v(form.child_name)}",
        f"Child DOB: {_v(form.child_date_of_birth)}",
        f"Child Grade: {_v(form.child_grade)}",
        f"Parent: {_v(form.parent_name)}",
        f"Parent Address: {_v(form.parent_address)}",
        f"Email: {_v(form.email)}",
        f"Phone: {_v(form.phone_full)}",
        f"Emergency: {_v(form.emergency_contact)} - {_v(form.emergency_phone_full)}",
        f"Allergies: {_v(form.allergies, 'N/A')}",
        f"Special: {_v(form.special_instructions, 'N/A')}",
        "",
        *schedule_lines(submission),
        *pricing_lines(pricing),
        "",
        *payment_lines(submission, settings),
    ]

    text = "\n".join(lines)
    html = f'<pre style="{PRE_STYLE}">' + "\n".join(escape(line) for line in lines) + "</pre>"
    return EmailMessage(subject=subject, text=text, html=html)


def payment_memo(submission: RegistrationSubmission) -> str:
    form = submission.form
    return f"Afterschool - {_v(form.child_name, 'Child')} - {_v(form.parent_name, 'Parent')}"


def build_parent_email(submission: RegistrationSubmission, settings: Settings) -> EmailMessage:
    """Confirmation sent to the parent's address with summary and payment instructions."""
    form = submission.form
    pricing = submission.pricing or {}
    payment = submission.payment
    memo = payment_memo(submission)
    total = f"${_money(pricing, 'totalForPeriod')} USD"

    summary = [
        ("Child", _v(form.child_name)),
        ("Parent", _v(form.parent_name)),
        ("Email", _v(form.email)),
        ("Phone", _v(form.phone_full)),
    ]
    breakdown = [
        ("Base weekly", f"${_money(pricing, 'baseWeekly')}"),
        ("Add-ons weekly", f"${_money(pricing, 'addOnWeekly')}"),
        ("Abacus weekly", f"${_money(pricing, 'abacusWeekly')}"),
        ("School discount", f"-${_money(pricing, 'schoolDiscountWeekly')}"),
        ("Prepay discount", f"-${_money(pricing, 'prepayDiscountWeekly')}"),
        ("Final weekly", f"${_money(pricing, 'finalWeekly')}"),
    ]
    zelle = []
    if form.payment_method in (None, "zelle"):
        zelle = [
            ("Recipient", settings.PAYMENT_RECIPIENT),
            ("Amount", total),
            ("Memo", memo),
        ]
        if payment.zelle_payer_name:
            zelle.append(("Payer name", payment.zelle_payer_name))
        if payment.zelle_confirmation:
            zelle.append(("Confirmation", payment.zelle_confirmation))
        if form.payment_notes:
            zelle.append(("Notes", form.payment_notes))

    schedule = schedule_lines(submission)

    # --- Plain text ---
    text_lines = [
        "Thank you for registering! We have received your submission.",
        "",
        "Registration summary:",
        *(f"• {label}: {value}" for label, value in summary),
        "",
        "Schedule:",
        *(f"• {line.removeprefix('Schedule: ')}" for line in schedule),
        "",
        "Price breakdown (per week):",
        *(f"• {label}: {value}" for label, value in breakdown),
        "",
        f"Weeks in billing period: {_v(pricing.get('periodWeeks'))}",
        f"One-time registration fee: ${_money(pricing, 'registrationFee')}",
        f"Total due this period: {total}",
    ]
    if zelle:
        text_lines += ["", "Payment via Zelle:", *(f"• {label}: {value}" for label, value in zelle)]

    # --- HTML ---
    def items(rows):
        return "".join(f"<li><strong>{escape(label)}:</strong> {escape(str(value))}</li>" for label, value in rows)

    html_parts = [
        '<div style="font-family: ui-sans-serif, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif; color:#111827">',
        '<h2 style="margin:0 0 8px; font-size:20px; color:#0f766e">Thank you for registering!</h2>',
        f"<p>We have received your submission at {escape(settings.ORGANIZATION_NAME)}. "
        "Below is your registration summary and payment details.</p>",
        f"<h3>Registration summary</h3><ul>{items(summary)}</ul>",
        "<h3>Schedule</h3><ul>" + "".join(f"<li>{escape(line)}</li>" for line in schedule) + "</ul>",
        f"<h3>Price breakdown</h3><ul>{items(breakdown)}</ul>",
        f"<p>Weeks in period: <strong>{escape(_v(pricing.get('periodWeeks')))}</strong></p>",
        f"<p>One-time registration fee: <strong>${escape(_money(pricing, 'registrationFee'))}</strong></p>",
        f"<p>Total due this period: <strong>{escape(total)}</strong></p>",
    ]
    if zelle:
        html_parts.append(f"<h3>Payment via Zelle</h3><ul>{items(zelle)}</ul>")
    html_parts.append("</div>")

    return EmailMessage(subject=PARENT_SUBJECT, text="\n".join(text_lines), html="".join(html_parts))


def build_test_email() -> EmailMessage:
    return EmailMessage(
        subject="Test email from Afterschool app",
        text="It works!",
        html="<p>It works!</p>",
    )
