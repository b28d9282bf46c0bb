"""Persistence for verification documents and their review state."""
from datetime import datetime

from sqlalchemy.orm import Session

from app.models.verification_document import VerificationDocument, DocumentStatus, DocumentType


def insert_document(
    db: Session,
    owner_id: int,
    document_type: DocumentType,
    file_ref: str,
    now: datetime,
    *,
    original_filename: str | None = None,
    content_type: str | None = None,
    size_bytes: int | None = None,
) -> VerificationDocument:
    doc = VerificationDocument(
        owner_id=owner_id,
        document_type=document_type,
        status=DocumentStatus.PENDING,
        file_ref=file_ref,
        original_filename=original_filename,
        content_type=content_type,
        size_bytes=size_bytes,
        submitted_at=now,
    )
    db.add(doc)
    db.flush()
    return doc


def get_document(db: Session, document_id: int) -> VerificationDocument | None:
    return db.query(VerificationDocument).filter(VerificationDocument.id == document_id).first()


def close_pending(
    db: Session,
    document_id: int,
    status: DocumentStatus,
    now: datetime,
    *,
    decided_by_user_id: int | None = None,
    rejection_reason: str | None = None,
) -> bool:
    """Move a PENDING row to a terminal status. False if the row is no longer PENDING."""
    updated = (
        db.query(VerificationDocument)
        .filter(
            VerificationDocument.id == document_id,
            VerificationDocument.status == DocumentStatus.PENDING,
        )
        .update(
            {
                VerificationDocument.status: status,
                VerificationDocument.decided_at: now,
                VerificationDocument.decided_by_user_id: decided_by_user_id,
                VerificationDocument.rejection_reason: rejection_reason,
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def list_documents(db: Session, owner_id: int, document_type: DocumentType | None = None) -> list[VerificationDocument]:
    """All rows for an owner, newest submission first."""
    q = db.query(VerificationDocument).filter(VerificationDocument.owner_id == owner_id)
    if document_type is not None:
        q = q.filter(VerificationDocument.document_type == document_type)
    return q.order_by(VerificationDocument.submitted_at.desc(), VerificationDocument.id.desc()).all()
