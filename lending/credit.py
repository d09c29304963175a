"""Simulated credit bureau.

Scores are a deterministic function of the phone number (preferred) or PAN;
the history block is random filler. One artificial delay per lookup stands in
for a real bureau round-trip.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Optional

from schemas import CreditGrade, CreditHistory

DEFAULT_CREDIT_SCORE = 600


def mock_credit_score(phone: Optional[str] = None, pan: Optional[str] = None) -> int:
    """500–899, stable for a given identifier."""
    key = phone or pan
    if not key:
        return DEFAULT_CREDIT_SCORE
    return 500 + sum(ord(ch) for ch in key) % 400


def credit_grade(score: int) -> CreditGrade:
    if score >= 750:
        return "A+"
    if score >= 700:
        return "A"
    if score >= 650:
        return "B+"
    if score >= 600:
        return "B"
    if score >= 550:
        return "C+"
    if score >= 500:
        return "C"
    return "D"


def mock_credit_history(rng: random.Random = random) -> CreditHistory:
    return CreditHistory(
        total_accounts=rng.randint(5, 14),
        active_accounts=rng.randint(2, 6),
        closed_accounts=rng.randint(0, 4),
        total_inquiries=rng.randint(1, 8),
        recent_inquiries=rng.randint(0, 2),
        payment_history=rng.randint(80, 99),
        credit_utilization=rng.randint(10, 49),
        oldest_account_years=rng.randint(2, 11),
    )


@dataclass
class CreditReport:
    credit_score: int
    credit_grade: CreditGrade
    credit_history: CreditHistory


class MockCreditBureau:
    def __init__(self, delay: float = 0.8):
        self.delay = delay

    async def lookup(self, phone: Optional[str] = None, pan: Optional[str] = None) -> CreditReport:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        score = mock_credit_score(phone, pan)
        return CreditReport(
            credit_score=score,
            credit_grade=credit_grade(score),
            credit_history=mock_credit_history(),
        )
