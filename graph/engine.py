"""Chat engine: advances a session by exactly one turn."""

import logging
from typing import Tuple

from graph.builder import build_graph
from graph.chat_nodes import ChatDeps
from graph.state import ChatMessage, ChatSession, ChatStep, TurnState
from langsmith_tracing import turn_trace
from schemas import utcnow

logger = logging.getLogger(__name__)


class ChatEngine:
    """
    Wraps the compiled graph. ``advance`` never mutates the session it is
    given: it works on a deep copy and hands the new session back, so the
    caller only persists turns that completed.
    """

    def __init__(self, deps: ChatDeps):
        self.deps = deps
        self.graph = build_graph()

    async def advance(self, session: ChatSession, message: str) -> Tuple[ChatSession, str]:
        updated = session.model_copy(deep=True)
        if message:
            updated.messages.append(ChatMessage(role="user", content=message))

        state: TurnState = {
            "step": updated.current_step,
            "message": message,
            "context": updated.context,
            "user_id": updated.user_id,
            "reply": "",
        }
        config = {"configurable": {"deps": self.deps}}
        with turn_trace(session.session_id, session.user_id or ""):
            result = await self.graph.ainvoke(state, config)

        reply = result["reply"]
        step = ChatStep(result["step"])
        if step != updated.current_step:
            logger.info(
                "Session %s: %s → %s", session.session_id, updated.current_step.value, step.value,
            )
        updated.current_step = step
        updated.context = result["context"]
        updated.user_id = result["user_id"]
        updated.messages.append(ChatMessage(role="assistant", content=reply))
        updated.updated_at = utcnow()
        return updated, reply
