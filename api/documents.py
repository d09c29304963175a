"""Document upload, KYC processing and the standalone credit check."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import Field

from api.deps import get_services
from errors import InvalidRequestError
from schemas import Record
from services import Services
from workers.document_processor import process_upload
from workers.kyc_processor import process_kyc

router = APIRouter(prefix="/api", tags=["kyc"])


class KycRequest(Record):
    session_id: str = Field(min_length=1)


class CreditScoreRequest(Record):
    phone: Optional[str] = None
    pan: Optional[str] = None


@router.post("/upload")
async def upload_document(
    file: UploadFile = File(...),
    session_id: str = Form(alias="sessionId", min_length=1),
    document_type: str = Form(alias="documentType", min_length=1),
    services: Services = Depends(get_services),
):
    data = await file.read()
    return await process_upload(
        services,
        session_id,
        document_type,
        data,
        file.content_type or "application/octet-stream",
        file.filename or document_type,
    )


@router.post("/process-kyc")
async def process_kyc_endpoint(req: KycRequest, services: Services = Depends(get_services)):
    return await process_kyc(services, req.session_id)


@router.post("/credit-score")
async def credit_score(req: CreditScoreRequest, services: Services = Depends(get_services)):
    if not req.phone and not req.pan:
        raise InvalidRequestError("Phone number or PAN is required")
    report = await services.credit_bureau.lookup(req.phone, req.pan)
    return {
        "success": True,
        "creditScore": report.credit_score,
        "creditGrade": report.credit_grade,
        "creditHistory": report.credit_history.to_json(),
    }
