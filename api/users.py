"""Borrower-side endpoints: lookup, application status and lender messages."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from api.deps import get_services
from errors import InvalidIdError, NotFoundError
from lending.matching import BUILTIN_OFFERS
from schemas import LenderMessage, Record
from services import Services
from stores.ids import check_id

router = APIRouter(prefix="/api/user", tags=["user"])


class UserMessageRequest(Record):
    session_id: str = Field(min_length=1)
    lender_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    user_id: Optional[str] = None


async def lender_name(services: Services, lender_id: str, default: str = "Unknown Lender") -> str:
    """Display name for a stored lender or a built-in catalog entry."""
    for offer in BUILTIN_OFFERS:
        if offer.lender_id == lender_id:
            return offer.lender_name
    try:
        lender = await services.lenders.get(lender_id)
    except InvalidIdError:
        return default
    if lender is None:
        return default
    return lender.company_name or lender.name


async def resolve_user_id(services: Services, session_id: str, user_id: Optional[str]) -> Optional[str]:
    """Explicit user id, else the session's bound user, else a phone/PAN lookup from its context."""
    if user_id:
        return user_id
    session = await services.sessions.get(session_id)
    if session is None:
        return None
    if session.user_id:
        return session.user_id
    user = await services.users.find_by_identity(session.context.phone, session.context.pan)
    return user.id if user else None


@router.get("/find")
async def find_user(phone: str = Query(min_length=1), services: Services = Depends(get_services)):
    user = await services.users.find_by_identity(phone=phone)
    if user is None:
        return {"user": None}
    return {
        "user": {
            "id": user.id,
            "name": user.name,
            "phone": user.phone,
            "email": user.email,
            "creditScore": user.credit_score,
            "creditGrade": user.credit_grade,
        }
    }


@router.get("/applications")
async def list_applications(
    session_id: str = Query(alias="sessionId", min_length=1),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    services: Services = Depends(get_services),
):
    target = await resolve_user_id(services, session_id, user_id)
    if not target:
        return {"applications": []}

    enriched = []
    for app in await services.applications.list_for_user(target):
        report = await services.reports.get(app.report_id)
        item = app.to_json()
        item["lenderName"] = await lender_name(services, app.lender_id)
        item["report"] = {
            "loanEligibility": report.loan_eligibility.to_json(),
            "financialStability": report.financial_stability.to_json(),
            "userScore": report.user_score,
        } if report else None
        enriched.append(item)
    return {"applications": enriched}


@router.get("/messages")
async def list_messages(
    session_id: str = Query(alias="sessionId", min_length=1),
    lender_id: Optional[str] = Query(default=None, alias="lenderId"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    services: Services = Depends(get_services),
):
    session = await services.sessions.get(session_id)
    target = (session.user_id if session else None) or user_id
    if not target:
        raise NotFoundError("Session not found or user not identified")

    messages = await services.messages.list(user_id=target, lender_id=lender_id)
    name = await lender_name(services, lender_id, default="Lender") if lender_id else "Lender"
    return {"messages": [m.to_json() for m in messages], "lenderName": name}


@router.post("/messages")
async def send_message(req: UserMessageRequest, services: Services = Depends(get_services)):
    """Borrower reply to a lender thread."""
    session = await services.sessions.get(req.session_id)
    target = (session.user_id if session else None) or req.user_id
    if not target:
        raise NotFoundError("Session not found or user not identified")
    check_id(target)

    message = await services.messages.append(LenderMessage(
        lender_id=req.lender_id,
        user_id=target,
        message=req.message,
        is_lender=False,
    ))
    return {"success": True, "message": message.to_json()}
