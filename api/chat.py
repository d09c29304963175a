"""Chat endpoints: one POST per conversational turn."""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from api.deps import get_services
from errors import NotFoundError
from graph.state import new_session
from schemas import Record
from services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


class ChatRequest(Record):
    session_id: str = Field(min_length=1)
    message: str                        # may be empty


@router.post("/chat")
async def post_chat(req: ChatRequest, services: Services = Depends(get_services)):
    """Advance the session by one turn. An unknown session id starts a new conversation."""
    session = await services.sessions.get(req.session_id)
    if session is None:
        logger.info("Starting session %s", req.session_id)
        session = new_session(req.session_id)

    updated, reply = await services.engine.advance(session, req.message)
    await services.sessions.save(updated)

    return {
        "response": reply,
        "currentStep": updated.current_step.value,
        "context": updated.context.to_json(),
        "matchingLenders": [o.to_json() for o in updated.context.matching_lenders or []],
    }


@router.get("/chat")
async def get_chat(session_id: str = Query(alias="sessionId"), services: Services = Depends(get_services)):
    session = await services.sessions.get(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return session.to_json()
