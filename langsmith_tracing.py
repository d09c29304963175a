"""LangSmith tracing — one chat turn = one trace, grouped by session."""

import os
from contextlib import contextmanager

from config import LANGSMITH_TRACING, LANGSMITH_PROJECT


def _ensure_env():
    """Ensure LangSmith env vars are set when tracing is enabled."""
    if LANGSMITH_TRACING:
        os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
        os.environ.setdefault("LANGCHAIN_PROJECT", LANGSMITH_PROJECT)


@contextmanager
def _traced(metadata: dict, tag: str):
    if not LANGSMITH_TRACING:
        yield
        return

    _ensure_env()
    import langsmith as ls

    with ls.tracing_context(
        project_name=LANGSMITH_PROJECT,
        enabled=True,
        metadata=metadata,
        tags=["loan-marketplace", tag],
    ):
        yield


def turn_trace(session_id: str, user_id: str = ""):
    """
    Wrap one graph invoke in a tracing context. The session id goes into the
    metadata so every turn of a conversation can be filtered together.
    No-op when tracing is disabled.
    """
    return _traced({"session_id": session_id, "user_id": user_id or session_id}, "chat-turn")


def job_trace(name: str, session_id: str):
    """Same as turn_trace, for the document and KYC workers."""
    return _traced({"session_id": session_id}, name)
