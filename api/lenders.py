"""Lender portal: registration, login, applications, reports and messaging."""

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from api.auth import create_token, current_lender_id, hash_password, verify_password
from api.deps import get_services
from errors import InvalidCredentialsError, InvalidRequestError, NotFoundError
from schemas import Attachment, Lender, LenderMessage, LoanType, OfferTerms, Record
from services import Services
from stores.ids import check_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lenders", tags=["lenders"])


class RegisterRequest(Record):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    company_name: str = Field(min_length=1)
    registration_number: str = Field(min_length=1)
    loan_types: List[LoanType] = Field(default_factory=list)
    terms: Optional[OfferTerms] = None


class LoginRequest(Record):
    email: str
    password: str


class DecisionRequest(Record):
    application_id: str = Field(min_length=1)
    action: Literal["approve", "reject"]
    message: Optional[str] = None


class LenderMessageRequest(Record):
    user_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    attachments: List[Attachment] = Field(default_factory=list)
    is_sanction_letter: bool = False


@router.post("/register")
async def register(req: RegisterRequest, services: Services = Depends(get_services)):
    email = req.email.strip().lower()
    if await services.lenders.find_by_email(email):
        raise InvalidRequestError("Lender with this email already exists")

    lender = await services.lenders.insert(Lender(
        name=req.name,
        email=email,
        password_hash=hash_password(req.password),
        company_name=req.company_name,
        registration_number=req.registration_number,
        loan_types=req.loan_types,
        terms=req.terms or OfferTerms(),
    ))
    logger.info("Registered lender %s (%s)", lender.id, lender.company_name)
    return {"success": True, "message": "Lender registered successfully", "lenderId": lender.id}


@router.post("/login")
async def login(req: LoginRequest, services: Services = Depends(get_services)):
    lender = await services.lenders.find_by_email(req.email.strip().lower())
    # Same error for unknown email and wrong password
    if lender is None or not verify_password(req.password, lender.password_hash):
        raise InvalidCredentialsError("Invalid credentials")
    return {
        "success": True,
        "token": create_token(lender.id, lender.email),
        "lender": lender.profile(),
    }


@router.get("/applications")
async def list_applications(
    lender_id: str = Depends(current_lender_id),
    services: Services = Depends(get_services),
):
    """Newest first, each with its report and the borrower's contact details."""
    enriched = []
    for app in await services.applications.list_for_lender(lender_id):
        report = await services.reports.get(app.report_id)
        user = await services.users.get(app.user_id)
        item = app.to_json()
        item["report"] = report.to_json() if report else None
        item["user"] = {"name": user.name, "email": user.email, "phone": user.phone} if user else None
        enriched.append(item)
    return {"applications": enriched}


@router.post("/applications")
async def decide_application(
    req: DecisionRequest,
    lender_id: str = Depends(current_lender_id),
    services: Services = Depends(get_services),
):
    status = "approved" if req.action == "approve" else "rejected"
    updated = await services.applications.update_status(req.application_id, lender_id, status, req.message)
    if not updated:
        raise NotFoundError("Application not found")
    logger.info("Lender %s %s application %s", lender_id, status, req.application_id)
    return {"success": True, "message": f"Application {status} successfully"}


@router.get("/reports")
async def list_reports(
    lender_id: str = Depends(current_lender_id),
    services: Services = Depends(get_services),
):
    reports = await services.reports.list_for_lender(lender_id)
    return {"reports": [r.to_json() for r in reports]}


@router.post("/messages")
async def send_message(
    req: LenderMessageRequest,
    lender_id: str = Depends(current_lender_id),
    services: Services = Depends(get_services),
):
    check_id(req.user_id)
    message = await services.messages.append(LenderMessage(
        lender_id=lender_id,
        user_id=req.user_id,
        message=req.message,
        attachments=req.attachments,
        is_sanction_letter=req.is_sanction_letter,
        is_lender=True,
    ))
    return {"success": True, "message": message.to_json()}


@router.get("/messages")
async def list_messages(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    lender_id: str = Depends(current_lender_id),
    services: Services = Depends(get_services),
):
    messages = await services.messages.list(user_id=user_id, lender_id=lender_id)
    return {"messages": [m.to_json() for m in messages]}
