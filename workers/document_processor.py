"""Document upload processing: extract fields from one KYC document image.

Runs inside the upload request: the extraction port reads the image, the
document is stored for the session's user, and the session's checklist is
updated (one entry per document type, a re-upload replaces the old one).
"""

import logging
from typing import Any, Dict

from errors import InvalidRequestError, NotFoundError
from graph.catalog import document_name, format_inr
from langsmith_tracing import job_trace
from schemas import DocumentType, ExtractedData, KYCDocument, utcnow

logger = logging.getLogger(__name__)


def parse_document_type(value: str) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        raise InvalidRequestError(f"Unknown document type: {value!r}") from None


def summarize(extracted: ExtractedData) -> str:
    """Short human-readable digest of the identity and income fields."""
    lines = []
    if extracted.name:
        lines.append(f"Name: {extracted.name}")
    if extracted.aadhar_number:
        lines.append(f"Aadhar: {extracted.aadhar_number}")
    if extracted.pan_number:
        lines.append(f"PAN: {extracted.pan_number}")
    if extracted.income_summary and extracted.income_summary.monthly_income:
        lines.append(f"Monthly Income: ₹{format_inr(extracted.income_summary.monthly_income)}")
    return "\n".join(lines)


async def process_upload(
    services,
    session_id: str,
    document_type: str,
    data: bytes,
    mime_type: str,
    filename: str,
) -> Dict[str, Any]:
    """
    Extract, store, and record one uploaded document.

    Raises NotFoundError for an unknown session, InvalidRequestError when the
    session has no bound user or the type is not one of the eight, and lets
    ExtractionError through (nothing is stored in that case).
    """
    doc_type = parse_document_type(document_type)
    session = await services.sessions.get(session_id)
    if session is None:
        raise NotFoundError("Session not found")
    if not session.user_id:
        raise InvalidRequestError("Session has no verified user yet")

    with job_trace("document-upload", session_id):
        extracted = await services.extractor.extract_document_fields(data, mime_type, doc_type)

    await services.documents.insert(KYCDocument(
        user_id=session.user_id,
        type=doc_type,
        file_url=f"/uploads/{session_id}/{filename}",
        extracted_data=extracted,
    ))

    session.context.record_upload(doc_type, extracted)
    session.updated_at = utcnow()
    await services.sessions.save(session)
    logger.info(
        "Session %s: stored %s (%d/%d uploaded)",
        session_id, doc_type.value, len(session.context.uploaded_documents), len(DocumentType),
    )

    name = document_name(doc_type)
    summary = summarize(extracted)
    message = f"{name} uploaded and processed successfully!"
    if summary:
        message += f"\n\nExtracted information:\n{summary}"
    return {
        "success": True,
        "extractedData": extracted.to_json(),
        "documentName": name,
        "summary": summary,
        "message": message,
    }
