import pytest

from extraction.port import ExtractionError, FieldKind, RateLimitError
from graph.catalog import REQUIRED_DOCUMENTS
from graph.router import NODE_NAMES, STEP_NODE_MAP, router
from graph.state import ChatStep, SessionContext
from lending.credit import mock_credit_score
from schemas import DocumentType, ExtractedData, LoanType


def at_step(session, step, **context):
    """Jump a session straight to ``step`` with the given context."""
    session.current_step = step
    session.context = SessionContext(**context)
    return session


# ── Router ──────────────────────────────────────────────────────────────

def test_every_step_has_a_node():
    for step in ChatStep:
        assert STEP_NODE_MAP[step] in NODE_NAMES


def test_kyc_collection_is_an_alias_for_document_upload():
    assert router({"step": ChatStep.KYC_COLLECTION}) == "document_upload"


# ── Greeting & name ─────────────────────────────────────────────────────

async def test_greeting_asks_for_name(engine, session):
    updated, reply = await engine.advance(session, "hi")
    assert updated.current_step == ChatStep.ASK_NAME
    assert reply == "Hello! I'm here to help you find the perfect loan. What's your name?"
    assert [m.role for m in updated.messages] == ["user", "assistant"]


async def test_empty_message_is_not_recorded(engine, session):
    updated, _ = await engine.advance(session, "")
    assert [m.role for m in updated.messages] == ["assistant"]


async def test_advance_does_not_mutate_input(engine, session):
    await engine.advance(session, "hi")
    assert session.current_step == ChatStep.GREETING
    assert session.messages == []


async def test_name_from_extractor(engine, extractor, session):
    extractor.utterances[FieldKind.NAME] = "Alice"
    at_step(session, ChatStep.ASK_NAME)
    updated, reply = await engine.advance(session, "Hi, I'm Alice")
    assert updated.context.name == "Alice"
    assert updated.current_step == ChatStep.ASK_LOAN_PURPOSE
    assert reply == "Nice to meet you, Alice! What's the purpose of your loan?"


async def test_name_falls_back_to_raw_message(engine, session):
    at_step(session, ChatStep.ASK_NAME)
    updated, _ = await engine.advance(session, "  Bob  ")
    assert updated.context.name == "Bob"


async def test_name_extraction_failure_propagates(engine, extractor, session):
    extractor.utterances[FieldKind.NAME] = ExtractionError("model down")
    at_step(session, ChatStep.ASK_NAME)
    with pytest.raises(ExtractionError):
        await engine.advance(session, "Alice")
    assert session.current_step == ChatStep.ASK_NAME
    assert session.context.name is None


# ── Loan purpose & type ─────────────────────────────────────────────────

async def test_purpose_with_recognised_type_skips_menu(engine, extractor, session):
    extractor.utterances[FieldKind.LOAN_TYPE] = "personal"
    at_step(session, ChatStep.ASK_LOAN_PURPOSE, name="Alice")
    updated, reply = await engine.advance(session, "I need money for a wedding")
    assert updated.current_step == ChatStep.ASK_LOAN_AMOUNT
    assert updated.context.selected_loan_type == LoanType.PERSONAL
    assert updated.context.loan_purpose == "I need money for a wedding"
    assert reply.startswith("Perfect! You're interested in a Personal loan.")


async def test_purpose_without_type_shows_menu(engine, session):
    at_step(session, ChatStep.ASK_LOAN_PURPOSE)
    updated, _ = await engine.advance(session, "just browsing")
    assert updated.current_step == ChatStep.SHOW_LOAN_TYPES
    assert updated.context.loan_purpose == "just browsing"
    assert updated.context.selected_loan_type is None


async def test_loan_type_extraction_failure_propagates(engine, extractor, session):
    extractor.utterances[FieldKind.LOAN_TYPE] = ExtractionError("model down")
    at_step(session, ChatStep.ASK_LOAN_PURPOSE, name="Alice")
    with pytest.raises(ExtractionError):
        await engine.advance(session, "I need money for a wedding")
    assert session.current_step == ChatStep.ASK_LOAN_PURPOSE
    assert session.context.loan_purpose is None
    assert session.messages == []


async def test_show_loan_types_matches_substring(engine, session):
    at_step(session, ChatStep.SHOW_LOAN_TYPES)
    updated, reply = await engine.advance(session, "I'd like a HOME loan")
    assert updated.context.selected_loan_type == LoanType.HOME
    assert updated.current_step == ChatStep.ASK_LOAN_AMOUNT
    assert "How much loan amount" in reply


async def test_show_loan_types_reprompts(engine, session):
    at_step(session, ChatStep.SHOW_LOAN_TYPES)
    updated, reply = await engine.advance(session, "not sure")
    assert updated.current_step == ChatStep.SHOW_LOAN_TYPES
    assert reply.startswith("Please select a valid loan type")


# ── Loan amount ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("message, expected", [
    ("5 lakh", 500_000),
    ("I need 10 lakhs", 1_000_000),
    ("50k", 50_000),
    ("2 crore", 20_000_000),
    ("₹5,00,000", 500_000),
])
async def test_amount_rule_based(engine, session, message, expected):
    at_step(session, ChatStep.ASK_LOAN_AMOUNT, selected_loan_type=LoanType.PERSONAL)
    updated, _ = await engine.advance(session, message)
    assert updated.context.loan_amount == expected
    assert updated.current_step == ChatStep.ELIGIBILITY_CHECK


async def test_amount_prefers_extractor(engine, extractor, session):
    extractor.utterances[FieldKind.LOAN_AMOUNT] = "750000"
    at_step(session, ChatStep.ASK_LOAN_AMOUNT)
    updated, reply = await engine.advance(session, "seven and a half lakh")
    assert updated.context.loan_amount == 750_000
    assert "₹7,50,000" in reply


async def test_amount_survives_extraction_failure(engine, extractor, session):
    extractor.utterances[FieldKind.LOAN_AMOUNT] = RateLimitError("quota")
    at_step(session, ChatStep.ASK_LOAN_AMOUNT)
    updated, _ = await engine.advance(session, "5 lakh")
    assert updated.context.loan_amount == 500_000


async def test_unparseable_amount_is_idempotent(engine, session):
    at_step(session, ChatStep.ASK_LOAN_AMOUNT, name="Alice")
    first, first_reply = await engine.advance(session, "a lot")
    second, second_reply = await engine.advance(first, "a lot")
    assert first.current_step == second.current_step == ChatStep.ASK_LOAN_AMOUNT
    assert first_reply == second_reply
    assert first.context == second.context == session.context


@pytest.mark.parametrize("message", ["0", "0 lakh", "zero"])
async def test_non_positive_amount_reprompts(engine, session, message):
    at_step(session, ChatStep.ASK_LOAN_AMOUNT)
    updated, reply = await engine.advance(session, message)
    assert updated.current_step == ChatStep.ASK_LOAN_AMOUNT
    assert updated.context.loan_amount is None
    assert reply.startswith("I couldn't understand the loan amount")


# ── Eligibility ─────────────────────────────────────────────────────────

async def test_eligibility_with_phone(engine, services, session):
    at_step(
        session, ChatStep.ELIGIBILITY_CHECK,
        name="Alice", selected_loan_type=LoanType.PERSONAL, loan_amount=500_000,
    )
    updated, reply = await engine.advance(session, "my number is 9876543210")

    assert updated.current_step == ChatStep.SHOW_LENDERS
    assert updated.context.phone == "9876543210"
    assert updated.context.credit_score == mock_credit_score("9876543210") == 625
    assert updated.context.credit_grade == "B"
    assert [o.lender_name for o in updated.context.matching_lenders] == ["HDFC Bank", "Axis Bank", "ICICI Bank"]
    assert "Credit Score Retrieved" in reply

    user = await services.users.get(updated.user_id)
    assert user.name == "Alice"
    assert user.phone == "9876543210"


async def test_eligibility_pan_is_uppercased(engine, session):
    at_step(session, ChatStep.ELIGIBILITY_CHECK, selected_loan_type=LoanType.HOME)
    updated, _ = await engine.advance(session, "pan abcde1234f")
    assert updated.context.pan == "ABCDE1234F"
    assert updated.context.phone is None
    assert [o.lender_name for o in updated.context.matching_lenders] == ["SBI"]


async def test_eligibility_uses_extractor_when_regex_misses(engine, extractor, session):
    extractor.utterances[FieldKind.PHONE_OR_PAN] = "9876543210"
    at_step(session, ChatStep.ELIGIBILITY_CHECK, selected_loan_type=LoanType.PERSONAL)
    updated, _ = await engine.advance(session, "nine eight seven six five four three two one zero")
    assert updated.context.phone == "9876543210"


async def test_eligibility_without_identifier_reprompts(engine, extractor, session):
    extractor.utterances[FieldKind.PHONE_OR_PAN] = ExtractionError("boom")
    at_step(session, ChatStep.ELIGIBILITY_CHECK, selected_loan_type=LoanType.PERSONAL)
    updated, reply = await engine.advance(session, "I'd rather not say")
    assert updated.current_step == ChatStep.ELIGIBILITY_CHECK
    assert updated.user_id is None
    assert "10-digit phone number" in reply


async def test_eligibility_same_phone_reuses_user(engine, session):
    at_step(session, ChatStep.ELIGIBILITY_CHECK, selected_loan_type=LoanType.PERSONAL)
    first, _ = await engine.advance(session, "9876543210")
    second, _ = await engine.advance(session, "9876543210")
    assert first.user_id == second.user_id


async def test_eligibility_without_offers_stays(engine, session):
    at_step(session, ChatStep.ELIGIBILITY_CHECK, selected_loan_type=LoanType.GOLD)
    updated, reply = await engine.advance(session, "9876543210")
    assert updated.current_step == ChatStep.ELIGIBILITY_CHECK
    assert updated.context.credit_score == 625
    assert "don't have lenders" in reply


async def test_eligibility_without_loan_type_shows_menu(engine, services, session):
    at_step(session, ChatStep.ELIGIBILITY_CHECK, name="Alice", loan_amount=500_000)
    updated, reply = await engine.advance(session, "9876543210")
    assert updated.current_step == ChatStep.SHOW_LOAN_TYPES
    assert updated.context.credit_score == 625
    assert not updated.context.matching_lenders
    assert "Please select a loan type first" in reply
    assert await services.users.get(updated.user_id) is not None

    updated, _ = await engine.advance(updated, "Vehicle")
    assert updated.current_step == ChatStep.ASK_LOAN_AMOUNT
    assert updated.context.selected_loan_type == LoanType.VEHICLE


# ── Lender selection ────────────────────────────────────────────────────

@pytest.fixture
async def with_offers(engine, session):
    at_step(session, ChatStep.ELIGIBILITY_CHECK, selected_loan_type=LoanType.PERSONAL)
    updated, _ = await engine.advance(session, "9876543210")
    return updated


async def test_select_lender_by_index(engine, with_offers):
    updated, reply = await engine.advance(with_offers, "2")
    assert updated.current_step == ChatStep.DOCUMENT_UPLOAD
    assert updated.context.selected_lender_name == "Axis Bank"
    assert updated.context.selected_lender == "lender3"
    assert updated.context.required_documents == REQUIRED_DOCUMENTS
    assert updated.context.current_document_index == 0
    assert updated.context.uploaded_documents == []
    assert "Aadhar Card" in reply


async def test_select_lender_by_name(engine, with_offers):
    updated, _ = await engine.advance(with_offers, "I'll go with icici bank")
    assert updated.context.selected_lender_name == "ICICI Bank"


@pytest.mark.parametrize("message", ["9", "0", "some bank"])
async def test_invalid_lender_choice_reprompts(engine, with_offers, message):
    updated, reply = await engine.advance(with_offers, message)
    assert updated.current_step == ChatStep.SHOW_LENDERS
    assert reply.startswith("Please select a valid lender")


async def test_show_lenders_with_empty_list(engine, session):
    at_step(session, ChatStep.SHOW_LENDERS, matching_lenders=[])
    updated, reply = await engine.advance(session, "1")
    assert updated.current_step == ChatStep.SHOW_LENDERS
    assert reply == "No lenders available. Please try again later."


# ── Document checklist ──────────────────────────────────────────────────

def _upload(session, doc_types):
    for doc_type in doc_types:
        session.context.record_upload(doc_type, ExtractedData())
    return session


async def test_chat_text_during_upload_reports_progress(engine, session):
    at_step(session, ChatStep.DOCUMENT_UPLOAD)
    _upload(session, [DocumentType.AADHAR, DocumentType.PAN])
    updated, reply = await engine.advance(session, "hello?")
    assert updated.current_step == ChatStep.DOCUMENT_UPLOAD
    assert "Progress: 2/8" in reply


async def test_done_phrase_asks_for_first_missing(engine, session):
    at_step(session, ChatStep.DOCUMENT_UPLOAD)
    _upload(session, [d for d in REQUIRED_DOCUMENTS if d != DocumentType.PASSBOOK])
    updated, reply = await engine.advance(session, "next document")
    assert updated.current_step == ChatStep.DOCUMENT_UPLOAD
    assert updated.context.current_document_index == 5
    assert "Passbook" in reply and "(6/8)" in reply


@pytest.mark.parametrize("order", [
    REQUIRED_DOCUMENTS,
    list(reversed(REQUIRED_DOCUMENTS)),
    REQUIRED_DOCUMENTS[3:] + REQUIRED_DOCUMENTS[:3],
])
async def test_all_documents_in_any_order_completes(engine, session, order):
    at_step(session, ChatStep.DOCUMENT_UPLOAD)
    _upload(session, order)
    updated, reply = await engine.advance(session, "All documents uploaded")
    assert updated.current_step == ChatStep.KYC_READY
    assert reply.startswith("🎉 Excellent! All 8 documents")


async def test_reupload_does_not_duplicate(engine, session):
    at_step(session, ChatStep.DOCUMENT_UPLOAD)
    _upload(session, [DocumentType.AADHAR, DocumentType.AADHAR, DocumentType.AADHAR])
    assert session.context.uploaded_types() == [DocumentType.AADHAR]
    updated, _ = await engine.advance(session, "uploaded")
    assert updated.current_step == ChatStep.DOCUMENT_UPLOAD


async def test_legacy_kyc_collection_step(engine, session):
    at_step(session, ChatStep.KYC_COLLECTION)
    _upload(session, REQUIRED_DOCUMENTS)
    updated, _ = await engine.advance(session, "uploaded")
    assert updated.current_step == ChatStep.KYC_READY


async def test_kyc_ready_and_report_generated_are_terminal(engine, session):
    at_step(session, ChatStep.KYC_READY)
    updated, reply = await engine.advance(session, "what now?")
    assert updated.current_step == ChatStep.KYC_READY
    assert reply.startswith("All documents are ready!")

    at_step(session, ChatStep.REPORT_GENERATED, selected_lender_name="HDFC Bank")
    updated, reply = await engine.advance(session, "thanks")
    assert updated.current_step == ChatStep.REPORT_GENERATED
    assert "HDFC Bank" in reply


# ── Whole conversation ──────────────────────────────────────────────────

async def test_conversation_from_greeting_to_lenders(engine, extractor, session):
    extractor.utterances[FieldKind.NAME] = "Alice"
    extractor.utterances[FieldKind.LOAN_TYPE] = "Vehicle"

    session, _ = await engine.advance(session, "Hi")
    assert session.current_step == ChatStep.ASK_NAME

    session, _ = await engine.advance(session, "I'm Alice")
    assert session.current_step == ChatStep.ASK_LOAN_PURPOSE
    assert session.context.name == "Alice"

    session, _ = await engine.advance(session, "need money for a car, Vehicle loan")
    assert session.current_step == ChatStep.ASK_LOAN_AMOUNT
    assert session.context.selected_loan_type == LoanType.VEHICLE

    session, _ = await engine.advance(session, "10 lakh")
    assert session.current_step == ChatStep.ELIGIBILITY_CHECK
    assert session.context.loan_amount == 1_000_000

    session, _ = await engine.advance(session, "9876543210")
    assert session.current_step == ChatStep.SHOW_LENDERS
    assert [o.lender_name for o in session.context.matching_lenders] == ["Bajaj Finserv"]
    assert len(session.messages) == 10
