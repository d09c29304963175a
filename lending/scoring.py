"""Composite user score (0–100) and the loan eligibility verdict derived from it."""

import math
from typing import Iterable, List, Optional

from schemas import (
    DocumentType,
    ExtractedData,
    LoanEligibility,
    User,
    UserScore,
)

# Documents that count towards documentAccuracy
CORE_DOCUMENTS = (
    DocumentType.AADHAR,
    DocumentType.PAN,
    DocumentType.BANK_STATEMENT,
    DocumentType.INCOME_PROOF,
)

ELIGIBILITY_THRESHOLD = 50


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _monthly_income(doc: ExtractedData) -> float:
    return doc.income_summary.monthly_income if doc.income_summary else 0


def income_stability(docs: List[ExtractedData]) -> int:
    """5–25 by monthly income bracket."""
    doc = next((d for d in docs if d.income_summary), None)
    income = _monthly_income(doc) if doc else 0
    if income >= 100_000:
        return 25
    if income >= 50_000:
        return 20
    if income >= 30_000:
        return 15
    if income >= 20_000:
        return 10
    return 5


def emi_burden(docs: List[ExtractedData]) -> int:
    """5–25, lower EMI-to-income ratio scores higher; 15 without income data."""
    doc = next((d for d in docs if d.emi_obligations and d.income_summary), None)
    income = _monthly_income(doc) if doc else 0
    if income <= 0:
        return 15
    ratio = doc.emi_obligations.total_emi / income
    if ratio < 0.2:
        return 25
    if ratio < 0.3:
        return 20
    if ratio < 0.4:
        return 15
    if ratio < 0.5:
        return 10
    return 5


def savings_ratio(docs: List[ExtractedData]) -> int:
    """5–20 by (annual savings / 12) / monthly income."""
    doc = next((d for d in docs if d.savings and d.income_summary), None)
    income = _monthly_income(doc) if doc else 0
    if income <= 0:
        return 5
    ratio = (doc.savings / 12) / income
    if ratio >= 0.3:
        return 20
    if ratio >= 0.2:
        return 15
    if ratio >= 0.1:
        return 10
    return 5


def credit_score_points(credit_score: float) -> float:
    """Linear rescale of 300–900 onto 0–20, clamped."""
    return max(0.0, min(20.0, (credit_score - 300) / 600 * 20))


def document_accuracy(present: Iterable[DocumentType]) -> int:
    present = set(present)
    found = sum(1 for doc in CORE_DOCUMENTS if doc in present)
    return round_half_up(10 * found / len(CORE_DOCUMENTS))


def calculate_user_score(
    user: User,
    extracted: List[ExtractedData],
    credit_score: float,
    present_types: Optional[Iterable[DocumentType]] = None,
) -> UserScore:
    components = dict(
        income_stability=income_stability(extracted),
        emi_burden=emi_burden(extracted),
        savings_ratio=savings_ratio(extracted),
        credit_score=credit_score_points(credit_score),
        document_accuracy=document_accuracy(present_types or []),
    )
    return UserScore(
        user_id=user.id or "",
        total_score=round_half_up(sum(components.values())),
        **components,
    )


def loan_eligibility(total_score: int) -> LoanEligibility:
    if total_score >= 80:
        max_amount, tenure = 5_000_000, 60
    elif total_score >= 60:
        max_amount, tenure = 3_000_000, 48
    else:
        max_amount, tenure = 1_000_000, 36

    if total_score >= 70:
        risk = "low"
    elif total_score >= ELIGIBILITY_THRESHOLD:
        risk = "medium"
    else:
        risk = "high"

    return LoanEligibility(
        eligible=total_score >= ELIGIBILITY_THRESHOLD,
        max_loan_amount=max_amount,
        recommended_tenure=tenure,
        risk_level=risk,
    )


def calculate_emi(principal: float, annual_rate: float, tenure_months: int) -> int:
    """EMI = P·R·(1+R)^N / ((1+R)^N − 1), R = monthly rate."""
    if principal <= 0 or tenure_months <= 0:
        return 0
    if annual_rate <= 0:
        return round_half_up(principal / tenure_months)
    r = annual_rate / 12 / 100
    growth = (1 + r) ** tenure_months
    return round_half_up(principal * r * growth / (growth - 1))
