"""Verification document and review schemas."""
from datetime import datetime

from app.models.verification_document import DocumentStatus, DocumentType
from app.schemas.common import CamelModel


class DocumentResponse(CamelModel):
    id: int
    owner_id: int
    document_type: DocumentType
    status: DocumentStatus
    rejection_reason: str | None = None
    original_filename: str | None = None
    content_type: str | None = None
    size_bytes: int | None = None
    submitted_at: datetime
    decided_at: datetime | None = None


class UploadResponse(CamelModel):
    message: str = "Document uploaded successfully. It will be reviewed by an administrator."
    document_id: int
    status: DocumentStatus
    document: DocumentResponse


class DocumentListResponse(CamelModel):
    documents: list[DocumentResponse]


class RejectRequest(CamelModel):
    rejection_reason: str | None = None


class DecisionResponse(CamelModel):
    message: str
    document: DocumentResponse
