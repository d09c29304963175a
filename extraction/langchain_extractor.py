"""LangChain-backed extraction port.

The LLM is used ONLY for:
  ✅ Pulling single fields (name, loan type, amount, phone/PAN) out of chat text
  ✅ Pulling structured fields out of KYC document images
  ❌ NOT for deciding the next conversation step (that's the router's job)
"""

import asyncio
import base64
import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import Field, ValidationError, create_model

from extraction.port import (
    ExtractionError,
    ExtractionNotConfiguredError,
    ExtractionPort,
    ExtractionResult,
    FieldKind,
    RateLimitError,
)
from prompts.extraction_prompts import (
    UTTERANCE_SYSTEM_PROMPT,
    get_document_prompt,
    get_utterance_prompt,
)
from schemas import DocumentType, ExtractedData

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ── Field definitions (data-driven) ────────────────────────────────────
# Each kind maps to the structured-output fields requested from the model.
FIELD_DEFS: Dict[FieldKind, Dict[str, str]] = {
    FieldKind.NAME: {"name": "The person's name only, or null"},
    FieldKind.LOAN_TYPE: {"loan_type": "Personal, Business, Home, Vehicle, Education, Gold, or null"},
    FieldKind.LOAN_AMOUNT: {"amount": "Loan amount in rupees as a plain number string, or null"},
    FieldKind.PHONE_OR_PAN: {
        "phone": "10 digit phone number, or null",
        "pan": "PAN number like ABCDE1234F, or null",
    },
}

_OUTPUT_MODELS = {
    kind: create_model(
        f"{kind.value.title().replace('_', '')}Extraction",
        **{k: (Optional[str], Field(None, description=desc)) for k, desc in fields.items()},
    )
    for kind, fields in FIELD_DEFS.items()
}

CONFIDENT = 0.9

_RATE_LIMIT_MARKERS = ("429", "quota", "rate limit", "too many requests", "resource_exhausted")
_RETRY_HINT = re.compile(r"retry.*?(\d+)\s*s", re.IGNORECASE)


def is_rate_limit(error: BaseException) -> bool:
    text = str(error).lower()
    return any(marker in text for marker in _RATE_LIMIT_MARKERS)


def retry_delay(error: BaseException, base_delay: float, attempt: int) -> float:
    """Exponential backoff, unless the provider told us how long to wait."""
    hint = _RETRY_HINT.search(str(error))
    if hint:
        return float(hint.group(1))
    return base_delay * (2 ** attempt)


def parse_json_object(text: str) -> Dict[str, Any]:
    """Pull the first JSON object out of a model reply, tolerating ``` fences."""
    cleaned = text.strip()
    cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s*```$", "", cleaned).strip()
    match = re.search(r"\{[\s\S]*\}", cleaned)
    if not match:
        raise ExtractionError(f"No JSON object found in response: {text[:200]}")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON format: {e}") from e
    if not isinstance(parsed, dict):
        raise ExtractionError("Expected a JSON object")
    return parsed


def drop_nulls(value: Any) -> Any:
    """Recursively remove null entries so model defaults apply."""
    if isinstance(value, dict):
        return {k: drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [drop_nulls(v) for v in value if v is not None]
    return value


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class LangChainExtractor(ExtractionPort):
    """Extraction port over any LangChain chat model (Gemini, Ollama, ...)."""

    def __init__(self, llm: Optional[BaseChatModel], max_retries: int = 3, base_delay: float = 1.0):
        self.llm = llm
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay

    def _require_llm(self) -> BaseChatModel:
        if self.llm is None:
            raise ExtractionNotConfiguredError("No extraction model configured. Check your .env file.")
        return self.llm

    async def _with_retry(self, call: Callable[[], Awaitable[T]]) -> T:
        """Retry rate-limit failures with backoff; everything else fails immediately."""
        for attempt in range(self.max_retries):
            try:
                return await call()
            except ExtractionError:
                raise
            except Exception as e:
                if not is_rate_limit(e):
                    raise ExtractionError(f"Extraction call failed: {e}") from e
                if attempt == self.max_retries - 1:
                    raise RateLimitError(
                        f"Rate limit still exceeded after {self.max_retries} attempts: {e}"
                    ) from e
                delay = retry_delay(e, self.base_delay, attempt)
                logger.warning(
                    "Rate limit hit. Retrying in %.1fs (attempt %d/%d)",
                    delay, attempt + 1, self.max_retries,
                )
                await asyncio.sleep(delay)
        raise RateLimitError("Rate limit retries exhausted")

    async def extract_utterance_field(self, text: str, kind: FieldKind) -> ExtractionResult:
        llm = self._require_llm()
        structured_llm = llm.with_structured_output(_OUTPUT_MODELS[kind])
        messages = [
            SystemMessage(content=UTTERANCE_SYSTEM_PROMPT),
            HumanMessage(content=get_utterance_prompt(kind.value, text)),
        ]

        extraction = await self._with_retry(lambda: structured_llm.ainvoke(messages))
        if extraction is None:
            return ExtractionResult()
        raw = extraction.model_dump(exclude_none=True)
        logger.debug("Extraction for %s: %s", kind.value, raw)

        value = None
        for key in FIELD_DEFS[kind]:
            candidate = str(raw.get(key) or "").strip()
            if candidate and candidate.lower() != "null":
                value = candidate
                break
        return ExtractionResult(value=value, confidence=CONFIDENT if value else 0.0)

    async def extract_document_fields(
        self, data: bytes, mime_type: str, doc_type: DocumentType
    ) -> ExtractedData:
        llm = self._require_llm()
        encoded = base64.b64encode(data).decode("utf-8")
        message = HumanMessage(content=[
            {"type": "text", "text": get_document_prompt(doc_type.value)},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
        ])

        response = await self._with_retry(lambda: llm.ainvoke([message]))
        parsed = parse_json_object(_content_text(response.content))
        try:
            return ExtractedData.model_validate(drop_nulls(parsed))
        except ValidationError as e:
            raise ExtractionError(f"Unexpected fields for {doc_type.value}: {e}") from e
