"""Lender matching: filter a catalog by loan type and score, rank by price."""

import logging
from typing import Dict, Iterable, List

from schemas import LoanOffer, LoanType

logger = logging.getLogger(__name__)

# ── Built-in catalog, used when the lender store is empty or unreachable ──
BUILTIN_OFFERS: List[LoanOffer] = [
    LoanOffer(
        lender_id="lender1", lender_name="HDFC Bank", loan_type=LoanType.PERSONAL,
        interest_rate=10.5, tenure_options=[12, 24, 36, 48, 60], max_amount=5_000_000,
        platform_discount=0.5, special_offers=["Zero processing fee", "Instant approval"],
        eligibility_score=60,
    ),
    LoanOffer(
        lender_id="lender2", lender_name="ICICI Bank", loan_type=LoanType.PERSONAL,
        interest_rate=11.0, tenure_options=[12, 24, 36, 48], max_amount=3_000_000,
        platform_discount=0.25, special_offers=["Quick disbursal"],
        eligibility_score=55,
    ),
    LoanOffer(
        lender_id="lender3", lender_name="Axis Bank", loan_type=LoanType.PERSONAL,
        interest_rate=10.75, tenure_options=[12, 24, 36, 48, 60, 72], max_amount=4_000_000,
        platform_discount=0.75, special_offers=["Flexible repayment", "Top-up available"],
        eligibility_score=65,
    ),
    LoanOffer(
        lender_id="lender4", lender_name="SBI", loan_type=LoanType.HOME,
        interest_rate=8.5, tenure_options=[60, 120, 180, 240, 300], max_amount=10_000_000,
        platform_discount=0.5, special_offers=["Lowest interest rates"],
        eligibility_score=70,
    ),
    LoanOffer(
        lender_id="lender5", lender_name="Bajaj Finserv", loan_type=LoanType.VEHICLE,
        interest_rate=9.5, tenure_options=[12, 24, 36, 48, 60], max_amount=2_000_000,
        platform_discount=1.0, special_offers=["Fast approval", "Online process"],
        eligibility_score=50,
    ),
]


def match_offers(
    loan_type: LoanType,
    user_score: float,
    credit_grade: str,
    catalog: Iterable[LoanOffer],
) -> List[LoanOffer]:
    """Offers for ``loan_type`` the user qualifies for, cheapest first.

    Ties on interest rate go to the larger platform discount. ``credit_grade``
    is accepted for parity with lender-side rules but does not filter yet.
    """
    matching = [
        offer for offer in catalog
        if offer.loan_type == loan_type and offer.eligibility_score <= user_score
    ]
    return sorted(matching, key=lambda o: (o.interest_rate, -o.platform_discount))


class LenderMatcher:
    """Matches against active lenders in the store, falling back to BUILTIN_OFFERS."""

    def __init__(self, lenders, fallback: Iterable[LoanOffer] = BUILTIN_OFFERS):
        self.lenders = lenders
        self.fallback = list(fallback)

    async def match(self, loan_type: LoanType, user_score: float, credit_grade: str) -> List[LoanOffer]:
        try:
            active = await self.lenders.list_active(loan_type)
            offers = match_offers(
                loan_type, user_score, credit_grade,
                (lender.offer_for(loan_type) for lender in active),
            )
        except Exception:
            logger.exception("Lender lookup failed; using built-in catalog")
            offers = []

        if offers:
            return offers
        return match_offers(loan_type, user_score, credit_grade, self.fallback)


# ── Loan type descriptions shown in chat ────────────────────────────────
LOAN_TYPE_INFO: Dict[LoanType, dict] = {
    LoanType.PERSONAL: {
        "description": "Personal loans for your immediate financial needs without collateral.",
        "benefits": [
            "Quick approval and disbursal",
            "No collateral required",
            "Flexible repayment options",
            "Competitive interest rates",
        ],
    },
    LoanType.BUSINESS: {
        "description": "Business loans to grow and expand your enterprise.",
        "benefits": [
            "High loan amounts",
            "Business-friendly terms",
            "Working capital support",
            "Tax benefits",
        ],
    },
    LoanType.HOME: {
        "description": "Home loans to make your dream home a reality.",
        "benefits": [
            "Long repayment tenure",
            "Low interest rates",
            "Tax deductions available",
            "Flexible EMI options",
        ],
    },
    LoanType.VEHICLE: {
        "description": "Vehicle loans for cars, bikes, and commercial vehicles.",
        "benefits": [
            "Fast processing",
            "Competitive rates",
            "Minimal documentation",
            "Quick disbursal",
        ],
    },
    LoanType.EDUCATION: {
        "description": "Education loans to support your academic aspirations.",
        "benefits": [
            "Moratorium period available",
            "Tax benefits",
            "No collateral for smaller amounts",
            "Flexible repayment",
        ],
    },
    LoanType.GOLD: {
        "description": "Gold loans secured against your gold assets.",
        "benefits": [
            "Low interest rates",
            "Quick approval",
            "Flexible tenure",
            "Minimal documentation",
        ],
    },
}


def loan_type_info(loan_type: LoanType) -> dict:
    return LOAN_TYPE_INFO[loan_type]
