"""Static conversation content: document checklist and bot copy."""

from typing import Iterable, List

from lending.matching import loan_type_info
from schemas import DocumentType, LoanType

# Order is only used to decide which document to ask for next.
REQUIRED_DOCUMENTS: List[DocumentType] = [
    DocumentType.AADHAR,
    DocumentType.PAN,
    DocumentType.BANK_STATEMENT,
    DocumentType.INCOME_PROOF,
    DocumentType.CANCELLED_CHEQUE,
    DocumentType.PASSBOOK,
    DocumentType.SIGNATURE,
    DocumentType.BIOMETRIC,
]

DOCUMENT_NAMES = {
    DocumentType.AADHAR: "Aadhar Card",
    DocumentType.PAN: "PAN Card",
    DocumentType.BANK_STATEMENT: "Bank Statement",
    DocumentType.INCOME_PROOF: "Income Proof",
    DocumentType.CANCELLED_CHEQUE: "Cancelled Cheque",
    DocumentType.PASSBOOK: "Passbook",
    DocumentType.SIGNATURE: "Signature Photo",
    DocumentType.BIOMETRIC: "Biometric Photo",
}

# Phrases (case-insensitive substrings) that trigger a checklist re-check
UPLOAD_DONE_PHRASES = ("next document", "all documents uploaded", "uploaded")

LOAN_TYPE_LIST = "Personal, Business, Home, Vehicle, Education, or Gold"
AMOUNT_EXAMPLES = "5 lakh, 10 lakhs, ₹5,00,000"


def document_name(doc_type: DocumentType) -> str:
    return DOCUMENT_NAMES.get(doc_type, doc_type.value)


def format_inr(amount: float) -> str:
    """Indian digit grouping: 1000000 → '10,00,000'."""
    whole, _, frac = f"{amount:.2f}".partition(".")
    sign = "-" if whole.startswith("-") else ""
    whole = whole.lstrip("-")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}" + (f".{frac}" if frac != "00" else "")


def bullet_list(items: Iterable[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def loan_type_pitch(loan_type: LoanType) -> str:
    info = loan_type_info(loan_type)
    return (
        f"{info['description']}\n\n"
        f"Benefits:\n{bullet_list(info['benefits'])}\n\n"
        f"How much loan amount are you looking for? (e.g., {AMOUNT_EXAMPLES})"
    )
