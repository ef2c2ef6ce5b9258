"""
Pricing Engine — weekly tuition, discounts, billing period and total due.

Pure math. No I/O, no state. Every call recomputes the full breakdown.

Input: EnrollmentConfig (days/week, time block, school, billing frequency, add-ons)
Output: PriceBreakdown

Discount order:
    subtotal = base + extended-hours add-on      (only amount eligible for discounts)
    core     = max(0, subtotal - school - prepay)
    final    = core + abacus                     (abacus is never discounted)
    total    = final * period_weeks + registration fee
"""

import enum
from dataclasses import asdict, dataclass
from types import MappingProxyType


class TimeBlock(str, enum.Enum):
    STANDARD = "4-6"
    EXTENDED_A = "3-6"
    EXTENDED_B = "4-7"
    EXTENDED_C = "3-7"


class School(str, enum.Enum):
    AFFILIATED = "Searingtown"
    OTHER = "Other"


class BillingFrequency(str, enum.Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTER = "3months"
    HALF = "6months"
    FULL_YEAR = "year"


# --- Rate card ---

BASE_WEEKLY = MappingProxyType({
    1: 75.0,
    2: 150.0,
    3: 225.0,
    4: 300.0,
    5: 375.0,
})

EXTENDED_HOURS_PER_DAY = MappingProxyType({
    TimeBlock.STANDARD: 0.0,
    TimeBlock.EXTENDED_A: 30.0,
    TimeBlock.EXTENDED_B: 30.0,
    TimeBlock.EXTENDED_C: 50.0,
})

# Flat $/week off the core subtotal, keyed by frequency.
PREPAY_WEEKLY_DISCOUNT = MappingProxyType({
    BillingFrequency.WEEKLY: 0.0,
    BillingFrequency.MONTHLY: 10.0,
    BillingFrequency.QUARTER: 25.0,
    BillingFrequency.HALF: 40.0,
    BillingFrequency.FULL_YEAR: 40.0,
})

# Minimum days/week for each prepay discount
PREPAY_MIN_DAYS = MappingProxyType({
    BillingFrequency.WEEKLY: 1,
    BillingFrequency.MONTHLY: 1,
    BillingFrequency.QUARTER: 3,
    BillingFrequency.HALF: 3,
    BillingFrequency.FULL_YEAR: 3,
})

# 4 weeks/month; full year is Sep–Jun (10 months)
PERIOD_WEEKS = MappingProxyType({
    BillingFrequency.WEEKLY: 1,
    BillingFrequency.MONTHLY: 4,
    BillingFrequency.QUARTER: 12,
    BillingFrequency.HALF: 24,
    BillingFrequency.FULL_YEAR: 40,
})

SCHOOL_DISCOUNT_RATE = 0.40
SCHOOL_DISCOUNT_MIN_DAYS = 2

ABACUS_MONTHLY = 350.0
WEEKS_PER_MONTH = 4
ABACUS_WEEKLY = round(ABACUS_MONTHLY / WEEKS_PER_MONTH, 2)
REGISTRATION_FEE = 90.0


@dataclass(frozen=True)
class EnrollmentConfig:
    days_per_week: int
    time_block: TimeBlock = TimeBlock.STANDARD
    school: School = School.OTHER
    frequency: BillingFrequency = BillingFrequency.WEEKLY
    extensions_enabled: bool = False
    abacus_enabled: bool = False
    is_carrington: bool = False


@dataclass(frozen=True)
class PriceBreakdown:
    base_weekly: float
    add_on_weekly: float
    abacus_weekly: float
    school_discount_weekly: float
    prepay_discount_weekly: float
    final_weekly: float
    period_weeks: int
    registration_fee: float
    total_for_period: float

    def to_dict(self) -> dict:
        """camelCase dict matching the submission payload's `pricing` object."""
        return {_camel(key): value for key, value in asdict(self).items()}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def school_discount(config: EnrollmentConfig, subtotal: float) -> float:
    """40% of the core subtotal for the affiliated school at 2+ days/week."""
    if config.school != School.AFFILIATED or config.days_per_week < SCHOOL_DISCOUNT_MIN_DAYS:
        return 0.0
    return round(subtotal * SCHOOL_DISCOUNT_RATE, 2)


def prepay_discount(frequency: BillingFrequency, days_per_week: int) -> float:
    """Weekly prepay discount. Quarter/half/year need 3+ days/week; monthly applies to any."""
    if days_per_week < PREPAY_MIN_DAYS[frequency]:
        return 0.0
    return PREPAY_WEEKLY_DISCOUNT[frequency]


def compute_price(config: EnrollmentConfig) -> PriceBreakdown:
    """
    Computes the full price breakdown for one enrollment.

    Assumes validated input: days_per_week in 1..5 and known enum members.
    """
    days = config.days_per_week
    base_weekly = BASE_WEEKLY[days]

    add_on_weekly = 0.0
    if config.extensions_enabled:
        add_on_weekly = EXTENDED_HOURS_PER_DAY[config.time_block] * days

    abacus_weekly = ABACUS_WEEKLY if config.abacus_enabled else 0.0

    subtotal = base_weekly + add_on_weekly
    school_discount_weekly = school_discount(config, subtotal)
    prepay_discount_weekly = prepay_discount(config.frequency, days)

    core_weekly = max(0.0, subtotal - school_discount_weekly - prepay_discount_weekly)
    final_weekly = round(core_weekly + abacus_weekly, 2)

    period_weeks = PERIOD_WEEKS[config.frequency]

    registration_fee = 0.0
    if config.abacus_enabled and not config.is_carrington:
        registration_fee = REGISTRATION_FEE

    total_for_period = round(final_weekly * period_weeks + registration_fee, 2)

    return PriceBreakdown(
        base_weekly=base_weekly,
        add_on_weekly=add_on_weekly,
        abacus_weekly=abacus_weekly,
        school_discount_weekly=school_discount_weekly,
        prepay_discount_weekly=prepay_discount_weekly,
        final_weekly=final_weekly,
        period_weeks=period_weeks,
        registration_fee=registration_fee,
        total_for_period=total_for_period,
    )


def price_table() -> dict:
    """Published rate card, for rendering form options."""
    return {
        "baseWeekly": {str(days): price for days, price in BASE_WEEKLY.items()},
        "extendedHoursPerDay": {block.value: rate for block, rate in EXTENDED_HOURS_PER_DAY.items()},
        "prepayWeeklyDiscount": {freq.value: amount for freq, amount in PREPAY_WEEKLY_DISCOUNT.items()},
        "prepayMinDays": {freq.value: days for freq, days in PREPAY_MIN_DAYS.items()},
        "periodWeeks": {freq.value: weeks for freq, weeks in PERIOD_WEEKS.items()},
        "schoolDiscount": {
            "school": School.AFFILIATED.value,
            "rate": SCHOOL_DISCOUNT_RATE,
            "minDays": SCHOOL_DISCOUNT_MIN_DAYS,
        },
        "abacusWeekly": ABACUS_WEEKLY,
        "registrationFee": REGISTRATION_FEE,
    }


def format_money(value) -> str:
    """Money with exactly 2 decimals. Missing values render as 0.00."""
    return f"{float(value or 0):.2f}"
