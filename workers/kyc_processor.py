"""KYC processing: score the user, write the loan report, open the application."""

import logging
from typing import Any, Dict, List, Optional

from errors import InvalidRequestError, NotFoundError
from graph.state import ChatStep
from langsmith_tracing import job_trace
from lending.credit import DEFAULT_CREDIT_SCORE
from lending.scoring import calculate_user_score, loan_eligibility
from schemas import (
    Application,
    DocumentType,
    ExtractedData,
    FinancialStability,
    KYCDocument,
    KycResults,
    LoanReport,
    User,
    UserIdentity,
    utcnow,
)

logger = logging.getLogger(__name__)


def latest_by_type(documents: List[KYCDocument]) -> Dict[DocumentType, KYCDocument]:
    """Documents arrive oldest first, so later uploads of a type win."""
    latest: Dict[DocumentType, KYCDocument] = {}
    for doc in documents:
        latest[doc.type] = doc
    return latest


def _extracted(docs: Dict[DocumentType, KYCDocument], doc_type: DocumentType) -> ExtractedData:
    doc = docs.get(doc_type)
    return doc.extracted_data if doc else ExtractedData()


def build_identity(docs: Dict[DocumentType, KYCDocument], user: User) -> UserIdentity:
    aadhar = _extracted(docs, DocumentType.AADHAR)
    pan = _extracted(docs, DocumentType.PAN)
    return UserIdentity(
        name=aadhar.name or user.name or "",
        date_of_birth=aadhar.date_of_birth or "",
        address=aadhar.address or "",
        aadhar_number=aadhar.aadhar_number or "",
        pan_number=pan.pan_number or user.pan or "",
    )


def build_financials(docs: Dict[DocumentType, KYCDocument]) -> FinancialStability:
    """Income from the income proof; expenses, savings and EMIs from the bank statement."""
    income_doc = _extracted(docs, DocumentType.INCOME_PROOF)
    bank_doc = _extracted(docs, DocumentType.BANK_STATEMENT)

    income = income_doc.income_summary.monthly_income if income_doc.income_summary else 0
    expenses = bank_doc.expense_summary.monthly_expenses if bank_doc.expense_summary else 0
    emi = bank_doc.emi_obligations.total_emi if bank_doc.emi_obligations else 0
    return FinancialStability(
        monthly_income=income,
        monthly_expenses=expenses,
        savings=bank_doc.savings or 0,
        emi_obligations=emi,
        disposable_income=income - expenses - emi,
    )


async def process_kyc(services, session_id: str) -> Dict[str, Any]:
    session = await services.sessions.get(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    if not session.user_id:
        raise NotFoundError("Session has no verified user")
    lender_id: Optional[str] = session.context.selected_lender
    if not lender_id:
        raise InvalidRequestError("No lender selected for this session")

    user = await services.users.get(session.user_id)
    if user is None:
        raise NotFoundError("User not found")

    with job_trace("kyc-processing", session_id):
        documents = await services.documents.list_for_user(user.id)
        latest = latest_by_type(documents)
        credit_score = user.credit_score or DEFAULT_CREDIT_SCORE

        score = calculate_user_score(
            user,
            [doc.extracted_data for doc in latest.values()],
            credit_score,
            latest.keys(),
        )
        await services.users.update_kyc(user.id, score.total_score, "completed")

        submitted = list(latest.keys())
        report = await services.reports.insert(LoanReport(
            user_id=user.id,
            lender_id=lender_id,
            user_identity=build_identity(latest, user),
            kyc_results=KycResults(
                status="verified",
                documents_submitted=submitted,
                documents_verified=submitted,
            ),
            credit_score=credit_score,
            credit_grade=user.credit_grade or "C",
            financial_stability=build_financials(latest),
            loan_eligibility=loan_eligibility(score.total_score),
            user_score=score.total_score,
        ))
        await services.applications.insert(Application(
            report_id=report.id,
            user_id=user.id,
            lender_id=lender_id,
            user_score=score.total_score,
            credit_score=credit_score,
            credit_grade=report.credit_grade,
            loan_type=user.selected_loan_type or session.context.selected_loan_type,
        ))

    session.current_step = ChatStep.REPORT_GENERATED
    session.updated_at = utcnow()
    await services.sessions.save(session)

    lender_name = session.context.selected_lender_name or "the selected lender"
    logger.info(
        "Session %s: KYC complete, user %s scored %d, application sent to %s",
        session_id, user.id, score.total_score, lender_id,
    )
    return {
        "success": True,
        "report": report.to_json(),
        "userScore": score.to_json(),
        "lenderId": lender_id,
        "lenderName": session.context.selected_lender_name or "Selected Lender",
        "message": f"KYC processing completed! Your loan application has been sent to {lender_name}.",
    }
