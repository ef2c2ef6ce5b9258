"""
Live quote endpoints — called by the form on every change.

GET /api/pricing/options: rate card for rendering choices
POST /api/pricing/quote: PriceBreakdown for one pricingInput
"""

from fastapi import APIRouter

from ..pricing_engine import compute_price, price_table
from ..schemas import PriceBreakdownOut, PricingInput

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.get("/options")
def get_options():
    return price_table()


@router.post("/quote", response_model=PriceBreakdownOut)
def quote(pricing_input: PricingInput):
    return compute_price(pricing_input.to_config()).to_dict()
