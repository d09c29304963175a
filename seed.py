"""Demo data.

``seed_lenders`` adds the three demo lender accounts and skips emails that
already exist. ``seed_all`` wipes the lender, user, document, report and
application collections and loads a complete dataset: lenders, four KYC'd
borrowers with their documents and reports, and one application per borrower
in each status.

Usage:  python seed.py          # demo lenders only
        python seed.py --all    # full demo dataset
"""

import argparse
import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List

from api.auth import hash_password
from config import LOG_LEVEL
from schemas import (
    Application,
    DocumentType,
    EmiObligations,
    ExistingLoan,
    ExpenseSummary,
    ExtractedData,
    FinancialStability,
    IncomeSummary,
    KYCDocument,
    KycResults,
    Lender,
    LoanEligibility,
    LoanReport,
    LoanType,
    OfferTerms,
    User,
    UserIdentity,
    utcnow,
)
from stores.base import LenderStore

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "demo123"

DEMO_LENDERS = [
    {
        "name": "HDFC Bank",
        "email": "demo@hdfc.com",
        "company_name": "HDFC Bank Limited",
        "registration_number": "HDFC001",
        "loan_types": [LoanType.PERSONAL, LoanType.HOME, LoanType.VEHICLE, LoanType.BUSINESS],
        "terms": OfferTerms(
            interest_rate=10.5, max_amount=5_000_000, platform_discount=0.5,
            special_offers=["Zero processing fee", "Instant approval"], eligibility_score=60,
        ),
    },
    {
        "name": "ICICI Bank",
        "email": "demo@icici.com",
        "company_name": "ICICI Bank Limited",
        "registration_number": "ICICI001",
        "loan_types": [LoanType.PERSONAL, LoanType.HOME, LoanType.EDUCATION],
        "terms": OfferTerms(
            interest_rate=11.0, tenure_options=[12, 24, 36, 48], max_amount=3_000_000,
            platform_discount=0.25, special_offers=["Quick disbursal"], eligibility_score=55,
        ),
    },
    {
        "name": "Axis Bank",
        "email": "demo@axis.com",
        "company_name": "Axis Bank Limited",
        "registration_number": "AXIS001",
        "loan_types": [LoanType.PERSONAL, LoanType.BUSINESS, LoanType.VEHICLE],
        "terms": OfferTerms(
            interest_rate=10.75, tenure_options=[12, 24, 36, 48, 60, 72], max_amount=4_000_000,
            platform_discount=0.75, special_offers=["Flexible repayment", "Top-up available"],
            eligibility_score=65,
        ),
    },
]

# The full dataset swaps HDFC for Tata Capital; ICICI and Axis are shared.
TATA_CAPITAL = {
    "name": "Tata Capital Bank",
    "email": "demo@tata.com",
    "company_name": "Tata Capital Bank Limited",
    "registration_number": "TATA001",
    "loan_types": [LoanType.PERSONAL, LoanType.HOME, LoanType.VEHICLE, LoanType.BUSINESS],
    "terms": OfferTerms(
        interest_rate=10.5, max_amount=5_000_000, platform_discount=0.5,
        special_offers=["Zero processing fee", "Instant approval"], eligibility_score=60,
    ),
}
ALL_LENDERS = [TATA_CAPITAL] + DEMO_LENDERS[1:]

CORE_DOCUMENTS = [
    DocumentType.AADHAR, DocumentType.PAN, DocumentType.BANK_STATEMENT, DocumentType.INCOME_PROOF,
]

# ``lender`` indexes ALL_LENDERS; amounts are monthly rupees.
DEMO_BORROWERS: List[Dict[str, Any]] = [
    {
        "user": User(
            name="Rajesh Kumar", phone="+919876543210", pan="ABCDE1234F", email="rajesh@example.com",
            credit_score=780, credit_grade="A+", loan_purpose="Home renovation",
            selected_loan_type=LoanType.PERSONAL,
        ),
        "user_score": 85,
        "slug": "rajesh",
        "dob": "1985-05-15",
        "address": "123 Main Street, Mumbai, Maharashtra 400001",
        "aadhar": "1234 5678 9012",
        "income": 120_000, "expenses": 45_000, "savings": 500_000, "emi": 15_000,
        "expense_categories": {"groceries": 15_000, "utilities": 10_000, "entertainment": 20_000},
        "loans": [ExistingLoan(lender="SBI", amount=15_000, remaining_tenure=24)],
        "disposable": 60_000,
        "eligibility": LoanEligibility(eligible=True, max_loan_amount=5_000_000, recommended_tenure=60, risk_level="low"),
        "lender": 0,
        "days_ago": 7,
        "status": "approved",
        "lender_message": (
            "Congratulations! Your loan application has been approved. "
            "We will process the disbursement within 2-3 business days."
        ),
        "decided_days_ago": 6,
    },
    {
        "user": User(
            name="Priya Sharma", phone="+919876543211", pan="FGHIJ5678K", email="priya@example.com",
            credit_score=650, credit_grade="B+", loan_purpose="Business expansion",
            selected_loan_type=LoanType.BUSINESS,
        ),
        "user_score": 65,
        "slug": "priya",
        "dob": "1990-08-20",
        "address": "456 Business Park, Delhi, Delhi 110001",
        "aadhar": "2345 6789 0123",
        "income": 80_000, "expenses": 35_000, "savings": 200_000, "emi": 20_000,
        "expense_categories": {"groceries": 12_000, "utilities": 8_000, "entertainment": 15_000},
        "loans": [ExistingLoan(lender="Tata Capital Bank", amount=20_000, remaining_tenure=36)],
        "disposable": 25_000,
        "eligibility": LoanEligibility(eligible=True, max_loan_amount=3_000_000, recommended_tenure=48, risk_level="medium"),
        "lender": 0,
        "days_ago": 3,
        "status": "pending",
    },
    {
        "user": User(
            name="Amit Patel", phone="+919876543212", pan="LMNOP9012Q", email="amit@example.com",
            credit_score=520, credit_grade="C", loan_purpose="Vehicle purchase",
            selected_loan_type=LoanType.VEHICLE,
        ),
        "user_score": 45,
        "slug": "amit",
        "dob": "1992-12-10",
        "address": "789 Residential Area, Bangalore, Karnataka 560001",
        "aadhar": "3456 7890 1234",
        "income": 50_000, "expenses": 40_000, "savings": 50_000, "emi": 25_000,
        "expense_categories": {"groceries": 15_000, "utilities": 10_000, "entertainment": 15_000},
        "loans": [
            ExistingLoan(lender="ICICI", amount=15_000, remaining_tenure=48),
            ExistingLoan(lender="Axis", amount=10_000, remaining_tenure=36),
        ],
        "disposable": -15_000,
        "eligibility": LoanEligibility(eligible=False, max_loan_amount=1_000_000, recommended_tenure=36, risk_level="high"),
        "lender": 1,
        "days_ago": 1,
        "status": "rejected",
        "lender_message": (
            "We regret to inform you that your loan application has been rejected due to high "
            "debt-to-income ratio and low credit score. Please improve your credit profile and "
            "try again after 6 months."
        ),
        "decided_days_ago": 1,
    },
    {
        "user": User(
            name="Sneha Reddy", phone="+919876543213", pan="RSTUV3456W", email="sneha@example.com",
            credit_score=720, credit_grade="A", loan_purpose="Education",
            selected_loan_type=LoanType.EDUCATION,
        ),
        "user_score": 75,
        "slug": "sneha",
        "dob": "1988-03-25",
        "address": "321 College Road, Hyderabad, Telangana 500001",
        "aadhar": "4567 8901 2345",
        "income": 95_000, "expenses": 30_000, "savings": 300_000, "emi": 10_000,
        "expense_categories": {"groceries": 10_000, "utilities": 8_000, "entertainment": 12_000},
        "loans": [ExistingLoan(lender="Tata Capital Bank", amount=10_000, remaining_tenure=12)],
        "disposable": 55_000,
        "eligibility": LoanEligibility(eligible=True, max_loan_amount=4_000_000, recommended_tenure=48, risk_level="low"),
        "lender": 2,
        "days_ago": 5,
        "status": "pending",
    },
]


async def seed_lenders(lenders: LenderStore) -> List[str]:
    """Insert the demo lenders that are missing. Returns the emails created."""
    created = []
    for entry in DEMO_LENDERS:
        if await lenders.find_by_email(entry["email"]):
            continue
        await lenders.insert(Lender(password_hash=hash_password(DEMO_PASSWORD), **entry))
        created.append(entry["email"])
    if created:
        logger.info("Seeded %d demo lenders: %s", len(created), ", ".join(created))
    else:
        logger.info("Demo lenders already present, nothing to seed")
    return created


def _documents(user_id: str, b: Dict[str, Any]) -> List[KYCDocument]:
    name = b["user"].name
    extracted = {
        DocumentType.AADHAR: ExtractedData(
            name=name, date_of_birth=b["dob"], address=b["address"], aadhar_number=b["aadhar"],
        ),
        DocumentType.PAN: ExtractedData(pan_number=b["user"].pan),
        DocumentType.BANK_STATEMENT: ExtractedData(
            expense_summary=ExpenseSummary(monthly_expenses=b["expenses"], categories=b["expense_categories"]),
            savings=b["savings"],
            emi_obligations=EmiObligations(total_emi=b["emi"], loans=b["loans"]),
        ),
        DocumentType.INCOME_PROOF: ExtractedData(
            income_summary=IncomeSummary(monthly_income=b["income"], annual_income=b["income"] * 12),
        ),
    }
    return [
        KYCDocument(
            user_id=user_id,
            type=doc_type,
            file_url=f"/uploads/{doc_type.value.replace('_', '-')}-{b['slug']}.pdf",
            extracted_data=data,
        )
        for doc_type, data in extracted.items()
    ]


async def seed_all(services) -> Dict[str, int]:
    """Replace the demo collections with the full dataset. Returns per-collection counts."""
    for store in (services.lenders, services.users, services.documents, services.reports, services.applications):
        await store.clear()
    logger.info("Cleared lenders, users, documents, reports and applications")

    lender_ids = []
    for entry in ALL_LENDERS:
        lender = await services.lenders.insert(Lender(password_hash=hash_password(DEMO_PASSWORD), **entry))
        lender_ids.append(lender.id)

    now = utcnow()
    documents = 0
    for b in DEMO_BORROWERS:
        user = await services.users.upsert_by_identity(b["user"])
        await services.users.update_kyc(user.id, b["user_score"], "completed")

        for doc in _documents(user.id, b):
            await services.documents.insert(doc)
            documents += 1

        lender_id = lender_ids[b["lender"]]
        created_at = now - timedelta(days=b["days_ago"])
        report = await services.reports.insert(LoanReport(
            user_id=user.id,
            lender_id=lender_id,
            user_identity=UserIdentity(
                name=user.name, date_of_birth=b["dob"], address=b["address"],
                aadhar_number=b["aadhar"], pan_number=user.pan,
            ),
            kyc_results=KycResults(
                status="verified", documents_submitted=CORE_DOCUMENTS, documents_verified=CORE_DOCUMENTS,
            ),
            credit_score=user.credit_score,
            credit_grade=user.credit_grade,
            financial_stability=FinancialStability(
                monthly_income=b["income"],
                monthly_expenses=b["expenses"],
                savings=b["savings"],
                emi_obligations=b["emi"],
                disposable_income=b["disposable"],
            ),
            loan_eligibility=b["eligibility"],
            user_score=b["user_score"],
            created_at=created_at,
        ))
        await services.applications.insert(Application(
            report_id=report.id,
            user_id=user.id,
            lender_id=lender_id,
            status=b["status"],
            user_score=b["user_score"],
            credit_score=user.credit_score,
            credit_grade=user.credit_grade,
            loan_type=user.selected_loan_type,
            lender_message=b.get("lender_message"),
            created_at=created_at,
            updated_at=now - timedelta(days=b.get("decided_days_ago", b["days_ago"])),
        ))

    counts = {
        "lenders": len(ALL_LENDERS),
        "users": len(DEMO_BORROWERS),
        "documents": documents,
        "reports": len(DEMO_BORROWERS),
        "applications": len(DEMO_BORROWERS),
    }
    logger.info("Seeded demo dataset: %s", ", ".join(f"{v} {k}" for k, v in counts.items()))
    return counts


async def _main(everything: bool) -> None:
    from services import build_services

    services = await build_services()
    try:
        if everything:
            await seed_all(services)
        else:
            await seed_lenders(services.lenders)
    finally:
        await services.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--all", action="store_true", help="wipe and load the full demo dataset")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(_main(args.all))
