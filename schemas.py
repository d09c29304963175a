"""Durable record schemas.

Each model maps to one MongoDB collection (see stores/mongo.py). Field names are
snake_case in Python and camelCase on the wire / in storage.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    """Base for every stored / serialized model: camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class LoanType(str, Enum):
    PERSONAL = "Personal"
    BUSINESS = "Business"
    HOME = "Home"
    VEHICLE = "Vehicle"
    EDUCATION = "Education"
    GOLD = "Gold"


class DocumentType(str, Enum):
    AADHAR = "aadhar"
    PAN = "pan"
    BANK_STATEMENT = "bank_statement"
    INCOME_PROOF = "income_proof"
    CANCELLED_CHEQUE = "cancelled_cheque"
    PASSBOOK = "passbook"
    SIGNATURE = "signature"
    BIOMETRIC = "biometric"


CreditGrade = Literal["A+", "A", "B+", "B", "C+", "C", "D"]
KycStatus = Literal["pending", "in_progress", "completed"]
ApplicationStatus = Literal["pending", "approved", "rejected"]
RiskLevel = Literal["low", "medium", "high"]


# ── Lenders & offers ────────────────────────────────────────────────────
class LoanOffer(Record):
    lender_id: str
    lender_name: str
    loan_type: LoanType
    interest_rate: float
    tenure_options: List[int]           # months, ascending
    max_amount: float
    platform_discount: float            # percentage points
    special_offers: List[str] = Field(default_factory=list)
    eligibility_score: float            # minimum user score required


class OfferTerms(Record):
    """Terms a lender attaches to every loan type it serves."""

    interest_rate: float = 11.0
    tenure_options: List[int] = Field(default_factory=lambda: [12, 24, 36, 48, 60])
    max_amount: float = 5_000_000
    platform_discount: float = 0.5
    special_offers: List[str] = Field(default_factory=lambda: ["Competitive rates", "Fast processing"])
    eligibility_score: float = 50


class Lender(Record):
    id: Optional[str] = None
    name: str
    email: str
    password_hash: str
    company_name: str
    registration_number: str
    loan_types: List[LoanType] = Field(default_factory=list)
    is_active: bool = True
    terms: OfferTerms = Field(default_factory=OfferTerms)
    created_at: datetime = Field(default_factory=utcnow)

    def offer_for(self, loan_type: LoanType) -> LoanOffer:
        return LoanOffer(
            lender_id=self.id or "",
            lender_name=self.company_name or self.name,
            loan_type=loan_type,
            **self.terms.model_dump(),
        )

    def profile(self) -> Dict[str, Any]:
        """Public view, never includes the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "companyName": self.company_name,
            "loanTypes": [t.value for t in self.loan_types],
        }


# ── Users & credit ──────────────────────────────────────────────────────
class User(Record):
    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    pan: Optional[str] = None
    email: Optional[str] = None
    credit_score: Optional[int] = None
    credit_grade: Optional[CreditGrade] = None
    loan_purpose: Optional[str] = None
    selected_loan_type: Optional[LoanType] = None
    user_score: Optional[int] = None
    kyc_status: KycStatus = "pending"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class CreditHistory(Record):
    total_accounts: int
    active_accounts: int
    closed_accounts: int = 0
    total_inquiries: int = 0
    recent_inquiries: int = 0
    payment_history: int                # % of payments made on time
    credit_utilization: int             # %
    oldest_account_years: int = 0


# ── KYC documents ───────────────────────────────────────────────────────
class IncomeSummary(Record):
    monthly_income: float = 0
    annual_income: float = 0


class ExpenseSummary(Record):
    monthly_expenses: float = 0
    categories: Dict[str, float] = Field(default_factory=dict)


class ExistingLoan(Record):
    lender: Optional[str] = None
    amount: float = 0
    remaining_tenure: Optional[float] = None


class EmiObligations(Record):
    total_emi: float = Field(0, alias="totalEMI")
    loans: List[ExistingLoan] = Field(default_factory=list)


class ExtractedData(Record):
    """Fields pulled out of a document image; which ones are set depends on the type."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: Optional[str] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    aadhar_number: Optional[str] = None
    pan_number: Optional[str] = None
    income_summary: Optional[IncomeSummary] = None
    expense_summary: Optional[ExpenseSummary] = None
    emi_obligations: Optional[EmiObligations] = None
    savings: Optional[float] = None
    loan_repayment_capability: Optional[float] = None


class KYCDocument(Record):
    id: Optional[str] = None
    user_id: str
    type: DocumentType
    file_url: str
    extracted_data: ExtractedData = Field(default_factory=ExtractedData)
    uploaded_at: datetime = Field(default_factory=utcnow)


# ── Scores, reports, applications ───────────────────────────────────────
class UserScore(Record):
    user_id: str
    income_stability: int               # 5–25
    emi_burden: int                     # 5–25
    savings_ratio: int                  # 5–20
    credit_score: float                 # 0–20
    document_accuracy: int              # 0–10
    total_score: int                    # 0–100
    calculated_at: datetime = Field(default_factory=utcnow)


class LoanEligibility(Record):
    eligible: bool
    max_loan_amount: int
    recommended_tenure: int             # months
    risk_level: RiskLevel


class UserIdentity(Record):
    name: str = ""
    date_of_birth: str = ""
    address: str = ""
    aadhar_number: str = ""
    pan_number: str = ""


class KycResults(Record):
    status: Literal["verified", "pending", "rejected"]
    documents_submitted: List[DocumentType]
    documents_verified: List[DocumentType]


class FinancialStability(Record):
    monthly_income: float
    monthly_expenses: float
    savings: float
    emi_obligations: float
    disposable_income: float


class LoanReport(Record):
    id: Optional[str] = None
    user_id: str
    lender_id: str
    user_identity: UserIdentity
    kyc_results: KycResults
    credit_score: int
    credit_grade: str
    financial_stability: FinancialStability
    loan_eligibility: LoanEligibility
    user_score: int
    created_at: datetime = Field(default_factory=utcnow)


class Application(Record):
    id: Optional[str] = None
    report_id: str
    user_id: str
    lender_id: str
    status: ApplicationStatus = "pending"
    user_score: int
    credit_score: int
    credit_grade: str
    loan_type: Optional[LoanType] = None
    lender_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ── Lender ↔ user messaging ─────────────────────────────────────────────
class Attachment(Record):
    type: str
    url: str
    name: str


class LenderMessage(Record):
    id: Optional[str] = None
    lender_id: str
    user_id: str
    message: str
    attachments: List[Attachment] = Field(default_factory=list)
    is_sanction_letter: bool = False
    is_lender: bool = True              # False for replies sent by the borrower
    created_at: datetime = Field(default_factory=utcnow)
