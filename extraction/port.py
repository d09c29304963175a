"""Extraction port: the chat flow's only view of the language/vision model.

Implementations either return a result or raise an ExtractionError subclass;
they never signal failure with a silent None.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from schemas import DocumentType, ExtractedData


class FieldKind(str, Enum):
    NAME = "name"
    LOAN_TYPE = "loan_type"
    LOAN_AMOUNT = "loan_amount"
    PHONE_OR_PAN = "phone_or_pan"


class ExtractionResult(BaseModel):
    value: Optional[str] = None
    confidence: float = 0.0


class ExtractionError(Exception):
    """The model could not produce a usable result."""


class ExtractionNotConfiguredError(ExtractionError):
    """No model is configured (e.g. missing API key)."""


class RateLimitError(ExtractionError):
    """Provider quota / rate limit still exceeded after retries."""


class ExtractionPort(ABC):
    @abstractmethod
    async def extract_utterance_field(self, text: str, kind: FieldKind) -> ExtractionResult:
        """Pull one field out of a free-text chat message."""

    @abstractmethod
    async def extract_document_fields(
        self, data: bytes, mime_type: str, doc_type: DocumentType
    ) -> ExtractedData:
        """Pull structured fields out of an uploaded document image."""
