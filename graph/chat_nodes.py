"""Chat step nodes: one async handler per conversation step.

Each node receives the turn state plus the injected collaborators (via the run
config) and returns a partial state update: always ``reply``, plus ``step``,
``context`` and ``user_id`` when they change. Nodes work on a copy of the
context, so a node that raises leaves nothing behind.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from langchain_core.runnables import RunnableConfig

from extraction.port import ExtractionError, ExtractionPort, FieldKind
from graph.catalog import (
    AMOUNT_EXAMPLES,
    LOAN_TYPE_LIST,
    REQUIRED_DOCUMENTS,
    UPLOAD_DONE_PHRASES,
    document_name,
    format_inr,
    loan_type_pitch,
)
from graph.parsing import (
    classify_identifier,
    find_loan_type,
    find_phone_and_pan,
    leading_index,
    normalize_loan_type,
    parse_amount,
)
from graph.state import ChatStep, SessionContext, TurnState
from lending.credit import MockCreditBureau
from lending.matching import LenderMatcher
from schemas import LoanOffer, User
from stores.base import UserStore

logger = logging.getLogger(__name__)


@dataclass
class ChatDeps:
    """Collaborators the chat nodes may call."""

    extractor: ExtractionPort
    users: UserStore
    matcher: LenderMatcher
    credit_bureau: MockCreditBureau
    provisional_score: float = 70


def _deps(config: RunnableConfig) -> ChatDeps:
    return config["configurable"]["deps"]


def _context(state: TurnState) -> SessionContext:
    return state["context"].model_copy(deep=True)


def _describe_offers(offers: List[LoanOffer]) -> str:
    lines = []
    for i, offer in enumerate(offers, start=1):
        lines.append(
            f"{i}. **{offer.lender_name}** — {offer.interest_rate}% p.a., "
            f"up to ₹{format_inr(offer.max_amount)}, "
            f"{offer.platform_discount}% platform discount"
        )
    return "\n".join(lines)


# ── Step nodes ──────────────────────────────────────────────────────────

async def greeting_node(state: TurnState) -> Dict[str, Any]:
    """First contact: input is ignored."""
    return {
        "reply": "Hello! I'm here to help you find the perfect loan. What's your name?",
        "step": ChatStep.ASK_NAME,
    }


async def ask_name_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    """Extraction failures propagate: there is no rule-based name parser."""
    message = state["message"]
    if not message.strip():
        return {"reply": "Please tell me your name so we can get started."}

    result = await _deps(config).extractor.extract_utterance_field(message, FieldKind.NAME)
    name = result.value or message.strip()

    context = _context(state)
    context.name = name
    return {
        "reply": f"Nice to meet you, {name}! What's the purpose of your loan?",
        "step": ChatStep.ASK_LOAN_PURPOSE,
        "context": context,
    }


async def ask_loan_purpose_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    """Store the purpose; skip the type menu when the message already names a loan type."""
    message = state["message"]
    context = _context(state)
    context.loan_purpose = message

    result = await _deps(config).extractor.extract_utterance_field(message, FieldKind.LOAN_TYPE)
    loan_type = normalize_loan_type(result.value)
    if loan_type is None:
        return {
            "reply": (
                "Great! Let me show you the available loan types. Please select one: "
                f"{LOAN_TYPE_LIST}."
            ),
            "step": ChatStep.SHOW_LOAN_TYPES,
            "context": context,
        }

    context.selected_loan_type = loan_type
    return {
        "reply": f"Perfect! You're interested in a {loan_type.value} loan.\n\n{loan_type_pitch(loan_type)}",
        "step": ChatStep.ASK_LOAN_AMOUNT,
        "context": context,
    }


async def show_loan_types_node(state: TurnState) -> Dict[str, Any]:
    loan_type = find_loan_type(state["message"])
    if loan_type is None:
        return {"reply": f"Please select a valid loan type: {LOAN_TYPE_LIST}."}

    context = _context(state)
    context.selected_loan_type = loan_type
    return {
        "reply": loan_type_pitch(loan_type),
        "step": ChatStep.ASK_LOAN_AMOUNT,
        "context": context,
    }


async def ask_loan_amount_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    """Extraction first, then '<number> <unit>', then a bare number."""
    message = state["message"]
    amount: Optional[float] = None
    try:
        result = await _deps(config).extractor.extract_utterance_field(message, FieldKind.LOAN_AMOUNT)
        amount = parse_amount(result.value)
    except ExtractionError as e:
        logger.warning("Amount extraction failed, using rule-based parse: %s", e)

    if amount is None:
        amount = parse_amount(message)
    if amount is None:
        return {
            "reply": (
                "I couldn't understand the loan amount. Please specify the amount clearly, "
                f"for example: {AMOUNT_EXAMPLES}, or 500000."
            ),
        }

    context = _context(state)
    context.loan_amount = amount
    return {
        "reply": (
            f"Got it! You're looking for a loan of ₹{format_inr(amount)}.\n\n"
            "To check your eligibility, please provide your phone number or PAN card number."
        ),
        "step": ChatStep.ELIGIBILITY_CHECK,
        "context": context,
    }


async def eligibility_check_node(state: TurnState, config: RunnableConfig) -> Dict[str, Any]:
    """Credit lookup → user upsert → lender matching, in that order."""
    deps = _deps(config)
    message = state["message"]

    phone, pan = find_phone_and_pan(message)
    if not phone and not pan:
        try:
            result = await deps.extractor.extract_utterance_field(message, FieldKind.PHONE_OR_PAN)
            phone, pan = classify_identifier(result.value)
        except ExtractionError as e:
            logger.warning("Phone/PAN extraction failed: %s", e)

    if not phone and not pan:
        return {
            "reply": (
                "Please provide a valid 10-digit phone number or PAN card number "
                "(e.g., ABCDE1234F). You can provide both if you have them."
            ),
        }

    report = await deps.credit_bureau.lookup(phone, pan)
    context = _context(state)
    context.phone = phone
    context.pan = pan
    context.credit_score = report.credit_score
    context.credit_grade = report.credit_grade
    context.credit_history = report.credit_history

    user = await deps.users.upsert_by_identity(User(
        name=context.name,
        phone=phone,
        pan=pan,
        credit_score=report.credit_score,
        credit_grade=report.credit_grade,
        loan_purpose=context.loan_purpose,
        selected_loan_type=context.selected_loan_type,
    ))
    logger.info("Bound session user %s (grade %s)", user.id, report.credit_grade)

    score_line = (
        "✅ **Credit Score Retrieved**\n\n"
        f"Your credit score: **{report.credit_score}** (Grade: **{report.credit_grade}**)"
    )
    if context.selected_loan_type is None:
        return {
            "reply": f"{score_line}\n\nPlease select a loan type first: {LOAN_TYPE_LIST}.",
            "step": ChatStep.SHOW_LOAN_TYPES,
            "context": context,
            "user_id": user.id,
        }

    offers = await deps.matcher.match(
        context.selected_loan_type, deps.provisional_score, report.credit_grade,
    )
    if not offers:
        return {
            "reply": f"{score_line}\n\nUnfortunately, we don't have lenders matching your profile at the moment.",
            "context": context,
            "user_id": user.id,
        }

    context.matching_lenders = offers
    return {
        "reply": (
            f"{score_line}\n\nHere are the best loan offers for you:\n\n{_describe_offers(offers)}\n\n"
            "Reply with the lender number or name to choose one."
        ),
        "step": ChatStep.SHOW_LENDERS,
        "context": context,
        "user_id": user.id,
    }


async def show_lenders_node(state: TurnState) -> Dict[str, Any]:
    """Resolve the choice by 1-based index or by lender name."""
    message = state["message"]
    offers = state["context"].matching_lenders or []
    if not offers:
        return {"reply": "No lenders available. Please try again later."}

    selected: Optional[LoanOffer] = None
    index = leading_index(message)
    if index is not None and 1 <= index <= len(offers):
        selected = offers[index - 1]
    if selected is None:
        lowered = message.lower()
        selected = next((o for o in offers if o.lender_name.lower() in lowered), None)
    if selected is None:
        return {"reply": "Please select a valid lender by typing the lender number or name."}

    context = _context(state)
    context.selected_lender = selected.lender_id
    context.selected_lender_name = selected.lender_name
    context.selected_offer = selected
    context.required_documents = list(REQUIRED_DOCUMENTS)
    context.current_document_index = 0
    if context.uploaded_documents is None:
        context.uploaded_documents = []

    return {
        "reply": (
            "✅ **Lender Selected!**\n\n"
            f"Great choice! You've selected **{selected.lender_name}**.\n\n"
            "Now let's collect your KYC documents to complete your loan application.\n\n"
            f"Please upload your **{document_name(REQUIRED_DOCUMENTS[0])}** first."
        ),
        "step": ChatStep.DOCUMENT_UPLOAD,
        "context": context,
    }


async def document_upload_node(state: TurnState) -> Dict[str, Any]:
    """Uploads arrive out-of-band; chat messages only check or report progress."""
    context = _context(state)
    if context.required_documents is None:
        context.required_documents = list(REQUIRED_DOCUMENTS)
    if context.uploaded_documents is None:
        context.uploaded_documents = []

    required = context.required_documents
    uploaded = set(context.uploaded_types())
    lowered = state["message"].lower()

    if not any(phrase in lowered for phrase in UPLOAD_DONE_PHRASES):
        return {
            "reply": (
                "Please use the upload option to upload your document. "
                f"Progress: {len(context.uploaded_documents)}/{len(REQUIRED_DOCUMENTS)} documents uploaded."
            ),
            "context": context,
        }

    all_uploaded = len(required) == len(REQUIRED_DOCUMENTS) and all(doc in uploaded for doc in required)
    if all_uploaded:
        return {
            "reply": (
                f"🎉 Excellent! All {len(REQUIRED_DOCUMENTS)} documents have been uploaded and processed.\n\n"
                "Process your KYC to generate your loan report and complete your application."
            ),
            "step": ChatStep.KYC_READY,
            "context": context,
        }

    next_index = next((i for i, doc in enumerate(required) if doc not in uploaded), None)
    if next_index is None:
        return {
            "reply": (
                f"You've uploaded {len(uploaded)} documents. "
                "Please continue uploading the remaining documents."
            ),
            "context": context,
        }

    context.current_document_index = next_index
    return {
        "reply": (
            f"Great! Now please upload your **{document_name(required[next_index])}** "
            f"({next_index + 1}/{len(required)})."
        ),
        "context": context,
    }


async def kyc_ready_node(state: TurnState) -> Dict[str, Any]:
    return {
        "reply": (
            "All documents are ready! Process your KYC to generate the report "
            "and complete your application."
        ),
    }


async def report_generated_node(state: TurnState) -> Dict[str, Any]:
    lender = state["context"].selected_lender_name or "the selected lender"
    return {
        "reply": (
            f"Your KYC is complete and your application has been sent to {lender}. "
            "You'll see the lender's decision and messages in your applications."
        ),
    }


async def fallback_node(state: TurnState) -> Dict[str, Any]:
    return {"reply": "I'm here to help! How can I assist you?"}
