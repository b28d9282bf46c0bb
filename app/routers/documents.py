"""Verification document upload, status and administrator review."""
import logging

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_blob_store, get_current_user, require_admin
from app.errors import ValidationError
from app.models.user import User
from app.models.verification_document import ReviewDecision
from app.schemas.documents import DecisionResponse, DocumentListResponse, DocumentResponse, RejectRequest, UploadResponse
from app.services import document_review
from app.services.storage import LocalBlobStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _read_upload(file: UploadFile) -> bytes:
    """Apply the upload policy: allowed content type and size limit."""
    settings = get_settings()
    if file is None or not file.filename:
        raise ValidationError("File is required")
    if file.content_type not in settings.upload_allowed_content_types:
        raise ValidationError("Invalid file type. Only PDF, JPG, and PNG are allowed.")
    content = file.file.read(settings.upload_max_bytes + 1)
    if not content:
        raise ValidationError("File is empty")
    if len(content) > settings.upload_max_bytes:
        raise ValidationError(f"File size exceeds maximum limit of {settings.upload_max_bytes // (1024 * 1024)}MB")
    return content


@router.post("/upload", response_model=UploadResponse, status_code=201)
def upload_document(
    document_type: str = Form(..., alias="documentType"),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: LocalBlobStore = Depends(get_blob_store),
):
    doc_type = document_review.parse_document_type(document_type)
    content = _read_upload(file)
    ref = store.put(current_user.id, content, file.content_type)
    try:
        doc = document_review.upload(
            db,
            current_user.id,
            doc_type,
            ref,
            original_filename=file.filename,
            content_type=file.content_type,
            size_bytes=len(content),
        )
    except Exception:
        store.delete(ref)
        raise
    return UploadResponse(document_id=doc.id, status=doc.status, document=DocumentResponse.model_validate(doc))


@router.get("/status", response_model=DocumentListResponse)
def document_status(
    document_type: str | None = Query(None, alias="documentType"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    docs = document_review.status_for(db, current_user.id, document_type)
    return DocumentListResponse(documents=[DocumentResponse.model_validate(d) for d in docs])


@router.post("/{document_id}/approve", response_model=DecisionResponse)
def approve_document(
    document_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    doc = document_review.decide(db, document_id, admin.id, ReviewDecision.APPROVED)
    return DecisionResponse(message="Document approved", document=DocumentResponse.model_validate(doc))


@router.post("/{document_id}/reject", response_model=DecisionResponse)
def reject_document(
    document_id: int,
    data: RejectRequest | None = Body(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    reason = data.rejection_reason if data else None
    doc = document_review.decide(db, document_id, admin.id, ReviewDecision.REJECTED, reason)
    return DecisionResponse(
        message="Document rejected. The user may upload a new document of the same type.",
        document=DocumentResponse.model_validate(doc),
    )
