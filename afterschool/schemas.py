from pydantic import BaseModel, Field
from typing import Any, Optional

from .pricing_engine import BillingFrequency, EnrollmentConfig, School, TimeBlock


class PricingInput(BaseModel):
    days_per_week: int = Field(alias="daysPerWeek", ge=1, le=5)
    time_block: TimeBlock = Field(TimeBlock.STANDARD, alias="timeBlock")
    school: School = School.OTHER
    frequency: BillingFrequency = BillingFrequency.WEEKLY
    extensions_enabled: bool = Field(False, alias="extensionsEnabled")
    abacus_enabled: bool = Field(False, alias="abacusEnabled")
    is_carrington: bool = Field(False, alias="isCarrington")

    class Config:
        populate_by_name = True

    def to_config(self) -> EnrollmentConfig:
        return EnrollmentConfig(
            days_per_week=self.days_per_week,
            time_block=self.time_block,
            school=self.school,
            frequency=self.frequency,
            extensions_enabled=self.extensions_enabled,
            abacus_enabled=self.abacus_enabled,
            is_carrington=self.is_carrington,
        )


class PriceBreakdownOut(BaseModel):
    baseWeekly: float
    addOnWeekly: float
    abacusWeekly: float
    schoolDiscountWeekly: float
    prepayDiscountWeekly: float
    finalWeekly: float
    periodWeeks: int
    registrationFee: float
    totalForPeriod: float


class RegistrationForm(BaseModel):
    child_name: Optional[str] = Field(None, alias="childName")
    child_date_of_birth: Optional[str] = Field(None, alias="childDateOfBirth")
    child_grade: Optional[str] = Field(None, alias="childGrade")
    parent_name: Optional[str] = Field(None, alias="parentName")
    parent_address: Optional[str] = Field(None, alias="parentAddress")
    email: Optional[str] = None
    phone_full: Optional[str] = Field(None, alias="phoneFull")
    emergency_contact: Optional[str] = Field(None, alias="emergencyContact")
    emergency_phone_full: Optional[str] = Field(None, alias="emergencyPhoneFull")
    allergies: Optional[str] = None
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")  # zelle, stripe, credit-card, cash, check
    payment_notes: Optional[str] = Field(None, alias="paymentNotes")

    class Config:
        populate_by_name = True


class PaymentDetails(BaseModel):
    zelle_payer_name: Optional[str] = Field(None, alias="zellePayerName")
    zelle_confirmation: Optional[str] = Field(None, alias="zelleConfirmation")
    payment_reference: Optional[str] = Field(None, alias="paymentReference")
    card_number: Optional[str] = Field(None, alias="cardNumber")
    card_expiration: Optional[str] = Field(None, alias="cardExpiration")
    card_zip_code: Optional[str] = Field(None, alias="cardZipCode")

    class Config:
        populate_by_name = True


class RegistrationSubmission(BaseModel):
    form: RegistrationForm = Field(default_factory=RegistrationForm)
    pricing_input: Optional[PricingInput] = Field(None, alias="pricingInput")
    # Opaque: rendered as sent, never recomputed
    pricing: Optional[dict[str, Any]] = None
    payment: PaymentDetails = Field(default_factory=PaymentDetails)

    class Config:
        populate_by_name = True


class EmailTestRequest(BaseModel):
    to: Optional[str] = None


class CheckoutRequest(BaseModel):
    pricing_input: PricingInput = Field(alias="pricingInput")
    customer_email: Optional[str] = Field(None, alias="customerEmail")
    child_name: Optional[str] = Field(None, alias="childName")

    class Config:
        populate_by_name = True
