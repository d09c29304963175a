"""Shared fixtures: a scripted extraction port and in-memory services."""

import pytest
from fastapi.testclient import TestClient

from extraction.port import ExtractionPort, ExtractionResult
from graph.state import new_session
from main import create_app
from schemas import ExtractedData
from services import build_memory_services


class FakeExtractor(ExtractionPort):
    """
    Scripted extraction port. ``utterances[kind]`` and ``documents[doc_type]``
    hold either a value to return or an exception to raise.
    """

    def __init__(self):
        self.utterances = {}
        self.documents = {}
        self.calls = []

    async def extract_utterance_field(self, text, kind):
        self.calls.append((kind, text))
        outcome = self.utterances.get(kind)
        if isinstance(outcome, Exception):
            raise outcome
        return ExtractionResult(value=outcome, confidence=0.9 if outcome else 0.0)

    async def extract_document_fields(self, data, mime_type, doc_type):
        self.calls.append((doc_type, len(data)))
        outcome = self.documents.get(doc_type)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome if outcome is not None else ExtractedData()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def services(extractor):
    return build_memory_services(extractor=extractor, credit_delay=0)


@pytest.fixture
def engine(services):
    return services.engine


@pytest.fixture
def session():
    return new_session("test-session")


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as c:
        yield c
