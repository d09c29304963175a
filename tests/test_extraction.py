import pytest
from langchain_core.messages import AIMessage

from extraction.langchain_extractor import (
    LangChainExtractor,
    drop_nulls,
    parse_json_object,
    retry_delay,
)
from extraction.port import (
    ExtractionError,
    ExtractionNotConfiguredError,
    FieldKind,
    RateLimitError,
)
from schemas import DocumentType


class StubLLM:
    """
    Minimal stand-in for a LangChain chat model. ``outcomes`` is consumed one
    per call: dicts become structured output / JSON replies, exceptions are raised.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def _next(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def with_structured_output(self, schema):
        llm = self

        class Structured:
            async def ainvoke(self, messages):
                return schema(**llm._next())

        return Structured()

    async def ainvoke(self, messages):
        return AIMessage(content=self._next())


async def test_utterance_field_returns_value():
    extractor = LangChainExtractor(StubLLM({"name": "Alice"}))
    result = await extractor.extract_utterance_field("Hi, I'm Alice", FieldKind.NAME)
    assert result.value == "Alice"
    assert result.confidence == 0.9


async def test_utterance_field_empty_result():
    extractor = LangChainExtractor(StubLLM({"name": None}))
    result = await extractor.extract_utterance_field("hmm", FieldKind.NAME)
    assert result.value is None
    assert result.confidence == 0.0


async def test_phone_or_pan_takes_first_present_field():
    extractor = LangChainExtractor(StubLLM({"phone": None, "pan": "ABCDE1234F"}))
    result = await extractor.extract_utterance_field("my pan", FieldKind.PHONE_OR_PAN)
    assert result.value == "ABCDE1234F"


async def test_rate_limit_is_retried():
    llm = StubLLM(Exception("429 Too Many Requests, retry in 0s"), {"amount": "500000"})
    extractor = LangChainExtractor(llm, max_retries=3, base_delay=0)
    result = await extractor.extract_utterance_field("5 lakh", FieldKind.LOAN_AMOUNT)
    assert result.value == "500000"
    assert llm.calls == 2


async def test_rate_limit_exhausted():
    llm = StubLLM(*[Exception("quota exceeded")] * 3)
    extractor = LangChainExtractor(llm, max_retries=3, base_delay=0)
    with pytest.raises(RateLimitError):
        await extractor.extract_utterance_field("5 lakh", FieldKind.LOAN_AMOUNT)
    assert llm.calls == 3


async def test_other_errors_fail_immediately():
    llm = StubLLM(ValueError("bad request"), {"name": "never"})
    extractor = LangChainExtractor(llm, max_retries=3, base_delay=0)
    with pytest.raises(ExtractionError):
        await extractor.extract_utterance_field("Alice", FieldKind.NAME)
    assert llm.calls == 1


async def test_missing_model_is_reported():
    with pytest.raises(ExtractionNotConfiguredError):
        await LangChainExtractor(None).extract_utterance_field("Alice", FieldKind.NAME)


async def test_document_fields_from_fenced_json():
    reply = '```json\n{"name": "Alice Rao", "aadharNumber": "1234 5678 9012", "incomeSummary": null}\n```'
    extractor = LangChainExtractor(StubLLM(reply))
    data = await extractor.extract_document_fields(b"\x89PNG", "image/png", DocumentType.AADHAR)
    assert data.name == "Alice Rao"
    assert data.aadhar_number == "1234 5678 9012"
    assert data.income_summary is None


async def test_document_nested_fields():
    reply = (
        '{"incomeSummary": {"monthlyIncome": 85000, "annualIncome": 1020000},'
        ' "emiObligations": {"totalEMI": 12000, "loans": [{"lender": "HDFC", "amount": 12000}]}}'
    )
    extractor = LangChainExtractor(StubLLM(reply))
    data = await extractor.extract_document_fields(b"img", "image/jpeg", DocumentType.BANK_STATEMENT)
    assert data.income_summary.monthly_income == 85000
    assert data.emi_obligations.total_emi == 12000
    assert data.emi_obligations.loans[0].lender == "HDFC"
    assert data.to_json()["emiObligations"]["totalEMI"] == 12000


async def test_document_without_json_fails():
    extractor = LangChainExtractor(StubLLM("I cannot read this image."))
    with pytest.raises(ExtractionError):
        await extractor.extract_document_fields(b"img", "image/png", DocumentType.PAN)


def test_parse_json_object():
    assert parse_json_object('Here you go: {"a": 1}') == {"a": 1}
    with pytest.raises(ExtractionError):
        parse_json_object("{not json}")


def test_drop_nulls():
    assert drop_nulls({"a": None, "b": {"c": None, "d": 1}, "e": [None, 2]}) == {"b": {"d": 1}, "e": [2]}


def test_retry_delay():
    assert retry_delay(Exception("Please retry in 7s"), 1.0, 0) == 7.0
    assert retry_delay(Exception("429"), 1.0, 2) == 4.0
