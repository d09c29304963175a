"""Builds the configured extraction port (hosted Gemini or local Ollama)."""

import logging

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_ollama import ChatOllama

from config import (
    AI_PROVIDER,
    EXTRACTION_BASE_DELAY,
    EXTRACTION_MAX_RETRIES,
    GOOGLE_API_KEY,
    LLM_MODEL,
    OLLAMA_BASE_URL,
    OLLAMA_MODEL,
)
from extraction.langchain_extractor import LangChainExtractor

logger = logging.getLogger(__name__)


def build_llm(provider: str = AI_PROVIDER):
    """Create the chat model for ``provider``; None when it cannot be configured."""
    if provider == "ollama":
        logger.info("Using Ollama at %s with model %s", OLLAMA_BASE_URL, OLLAMA_MODEL)
        return ChatOllama(base_url=OLLAMA_BASE_URL, model=OLLAMA_MODEL, temperature=0)

    if provider != "gemini":
        logger.warning("Unknown AI provider %r, defaulting to Gemini", provider)
    if not GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not set; extraction calls will fail until it is configured")
        return None
    logger.info("Using Gemini model %s", LLM_MODEL)
    return ChatGoogleGenerativeAI(model=LLM_MODEL, google_api_key=GOOGLE_API_KEY, temperature=0)


def build_extractor(provider: str = AI_PROVIDER) -> LangChainExtractor:
    return LangChainExtractor(
        build_llm(provider),
        max_retries=EXTRACTION_MAX_RETRIES,
        base_delay=EXTRACTION_BASE_DELAY,
    )
