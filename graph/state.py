"""Chat session schema and the per-turn graph state."""

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, TypedDict

from pydantic import Field

from schemas import (
    CreditGrade,
    CreditHistory,
    DocumentType,
    ExtractedData,
    LoanOffer,
    LoanType,
    Record,
    utcnow,
)


class ChatStep(str, Enum):
    """Closed set of conversation states. GREETING is the only initial state."""

    GREETING = "greeting"
    ASK_NAME = "ask_name"
    ASK_LOAN_PURPOSE = "ask_loan_purpose"
    SHOW_LOAN_TYPES = "show_loan_types"
    ASK_LOAN_AMOUNT = "ask_loan_amount"
    ELIGIBILITY_CHECK = "eligibility_check"
    SHOW_LENDERS = "show_lenders"
    DOCUMENT_UPLOAD = "document_upload"
    KYC_COLLECTION = "kyc_collection"   # Older sessions; handled like DOCUMENT_UPLOAD
    KYC_READY = "kyc_ready"
    REPORT_GENERATED = "report_generated"


class ChatMessage(Record):
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class UploadedDocument(Record):
    type: DocumentType
    extracted_data: ExtractedData = Field(default_factory=ExtractedData)


class SessionContext(Record):
    """Everything gathered so far. Fields fill in progressively, none are required."""

    name: Optional[str] = None
    loan_purpose: Optional[str] = None
    selected_loan_type: Optional[LoanType] = None
    loan_amount: Optional[float] = None
    phone: Optional[str] = None
    pan: Optional[str] = None
    credit_score: Optional[int] = None
    credit_grade: Optional[CreditGrade] = None
    credit_history: Optional[CreditHistory] = None
    matching_lenders: Optional[List[LoanOffer]] = None
    selected_lender: Optional[str] = None
    selected_lender_name: Optional[str] = None
    selected_offer: Optional[LoanOffer] = None
    required_documents: Optional[List[DocumentType]] = None
    uploaded_documents: Optional[List[UploadedDocument]] = None
    current_document_index: Optional[int] = None

    def uploaded_types(self) -> List[DocumentType]:
        return [d.type for d in self.uploaded_documents or []]

    def record_upload(self, doc_type: DocumentType, extracted: ExtractedData) -> None:
        """Add or replace the entry for ``doc_type`` (one entry per type, last write wins)."""
        docs = list(self.uploaded_documents or [])
        entry = UploadedDocument(type=doc_type, extracted_data=extracted)
        for i, existing in enumerate(docs):
            if existing.type == doc_type:
                docs[i] = entry
                break
        else:
            docs.append(entry)
        self.uploaded_documents = docs


class ChatSession(Record):
    session_id: str
    messages: List[ChatMessage] = Field(default_factory=list)
    current_step: ChatStep = ChatStep.GREETING
    context: SessionContext = Field(default_factory=SessionContext)
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


def new_session(session_id: str) -> ChatSession:
    """Factory: a fresh conversation sitting at GREETING."""
    return ChatSession(session_id=session_id)


class TurnState(TypedDict):
    """Graph state for a single turn: one router hop, one step node."""

    step: ChatStep
    message: str
    context: SessionContext
    user_id: Optional[str]
    reply: str
