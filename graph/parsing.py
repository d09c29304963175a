"""Rule-based parsers for chat input: NO LLM calls.

These back up (or replace) the extraction port for amounts, phone numbers,
PANs and loan-type mentions.
"""

import math
import re
from typing import Optional, Tuple

from schemas import LoanType

PHONE_RE = re.compile(r"\b\d{10}\b", re.ASCII)
PAN_RE = re.compile(r"\b[A-Z]{5}[0-9]{4}[A-Z]\b", re.IGNORECASE | re.ASCII)
PHONE_EXACT_RE = re.compile(r"^\d{10}$", re.ASCII)
PAN_EXACT_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$", re.IGNORECASE | re.ASCII)

_NUMBER = r"(\d+(?:,\d+)*(?:\.\d+)?)"
AMOUNT_WITH_UNIT_RE = re.compile(
    _NUMBER + r"\s*(lakh|lakhs|crore|crores|thousand|thousands|k|cr)", re.IGNORECASE | re.ASCII
)
BARE_AMOUNT_RE = re.compile(_NUMBER, re.ASCII)
LEADING_INDEX_RE = re.compile(r"^(\d+)", re.ASCII)

UNIT_MULTIPLIERS = {
    "lakh": 100_000,
    "crore": 10_000_000,
    "cr": 10_000_000,
    "thousand": 1_000,
    "k": 1_000,
}


def _unit_multiplier(unit: str) -> int:
    unit = unit.lower()
    if unit.startswith("crore") or unit == "cr":
        return UNIT_MULTIPLIERS["crore"]
    if unit.startswith("lakh"):
        return UNIT_MULTIPLIERS["lakh"]
    return UNIT_MULTIPLIERS["thousand"]


def _number(text: str) -> float:
    return float(text.replace(",", ""))


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    value = round(value, 2)  # 1.1 lakh is 110000, not 110000.00000000001
    return int(value) if value.is_integer() else value


def parse_amount(text: str) -> Optional[float]:
    """'5 lakh' → 500000, '₹5,00,000' → 500000, '2 crore' → 20000000.

    Tries ``<number> <unit>`` first, then the first bare number. Returns None
    unless the result is a finite number above zero.
    """
    if not text:
        return None
    match = AMOUNT_WITH_UNIT_RE.search(text)
    if match:
        return _positive(_number(match.group(1)) * _unit_multiplier(match.group(2)))
    match = BARE_AMOUNT_RE.search(text)
    if match:
        return _positive(_number(match.group(1)))
    return None


def find_phone_and_pan(text: str) -> Tuple[Optional[str], Optional[str]]:
    """Regex scan for a 10-digit phone and a PAN (PAN normalized to uppercase)."""
    phone = PHONE_RE.search(text or "")
    pan = PAN_RE.search(text or "")
    return (
        phone.group(0) if phone else None,
        pan.group(0).upper() if pan else None,
    )


def classify_identifier(value: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Sort a single extracted identifier into (phone, pan)."""
    value = (value or "").strip()
    if PHONE_EXACT_RE.match(value):
        return value, None
    if PAN_EXACT_RE.match(value):
        return None, value.upper()
    return None, None


def find_loan_type(text: str) -> Optional[LoanType]:
    """First loan type whose name appears anywhere in ``text`` (case-insensitive)."""
    lowered = (text or "").lower()
    for loan_type in LoanType:
        if loan_type.value.lower() in lowered:
            return loan_type
    return None


def normalize_loan_type(value: Optional[str]) -> Optional[LoanType]:
    """Exact (case-insensitive) match of an extracted value against the six types."""
    value = (value or "").strip().lower()
    for loan_type in LoanType:
        if loan_type.value.lower() == value:
            return loan_type
    return None


def leading_index(text: str) -> Optional[int]:
    match = LEADING_INDEX_RE.match((text or "").strip())
    return int(match.group(1)) if match else None
