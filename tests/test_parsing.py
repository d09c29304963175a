import pytest

from graph.catalog import format_inr
from graph.parsing import (
    classify_identifier,
    find_loan_type,
    find_phone_and_pan,
    leading_index,
    normalize_loan_type,
    parse_amount,
)
from schemas import LoanType


@pytest.mark.parametrize("text, expected", [
    ("5 lakh", 500_000),
    ("5lakhs", 500_000),
    ("10 lakhs", 1_000_000),
    ("500000", 500_000),
    ("1.5 lakh", 150_000),
    ("1.1 lakh", 110_000),
    ("2 crore", 20_000_000),
    ("3 cr", 30_000_000),
    ("50 thousand", 50_000),
    ("75K", 75_000),
    ("₹5,00,000", 500_000),
    ("around 250000 rupees", 250_000),
    ("12500.50", 12_500.5),
])
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "a lot", "0", "0 lakh", None])
def test_parse_amount_rejects(text):
    assert parse_amount(text) is None


def test_unit_takes_precedence_over_bare_number():
    assert parse_amount("for 2 years, 5 lakh") == 500_000


def test_find_phone_and_pan():
    assert find_phone_and_pan("call 9876543210") == ("9876543210", None)
    assert find_phone_and_pan("pan is abcde1234f") == (None, "ABCDE1234F")
    assert find_phone_and_pan("9876543210 / ABCDE1234F") == ("9876543210", "ABCDE1234F")
    assert find_phone_and_pan("98765 43210") == (None, None)
    assert find_phone_and_pan("+9198765432101") == (None, None)


def test_classify_identifier():
    assert classify_identifier("9876543210") == ("9876543210", None)
    assert classify_identifier(" abcde1234f ") == (None, "ABCDE1234F")
    assert classify_identifier("hello") == (None, None)
    assert classify_identifier(None) == (None, None)


def test_find_loan_type():
    assert find_loan_type("education loan please") == LoanType.EDUCATION
    assert find_loan_type("GOLD") == LoanType.GOLD
    assert find_loan_type("mortgage") is None


def test_normalize_loan_type_is_exact():
    assert normalize_loan_type("vehicle") == LoanType.VEHICLE
    assert normalize_loan_type(" Business ") == LoanType.BUSINESS
    assert normalize_loan_type("vehicle loan") is None
    assert normalize_loan_type(None) is None


def test_leading_index():
    assert leading_index("2") == 2
    assert leading_index(" 3. Axis") == 3
    assert leading_index("option 2") is None


@pytest.mark.parametrize("amount, text", [
    (500, "500"),
    (500_000, "5,00,000"),
    (20_000_000, "2,00,00,000"),
    (12_500.5, "12,500.50"),
])
def test_format_inr(amount, text):
    assert format_inr(amount) == text


def test_non_ascii_digits_are_not_numbers():
    devanagari = "९८७६५४३२१०"
    assert find_phone_and_pan(devanagari) == (None, None)
    assert classify_identifier(devanagari) == (None, None)
    assert parse_amount("५ lakh") is None
    assert leading_index("२") is None
