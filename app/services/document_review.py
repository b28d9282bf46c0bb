"""Document uploads and administrator review decisions.

Each document row goes PENDING -> APPROVED | REJECTED exactly once. A
rejected type is re-submitted as a new row; rejected rows are never reopened.
"""
import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.errors import NotFoundError, StaleStateError, ValidationError
from app.models.user import User
from app.models.verification_document import DocumentStatus, DocumentType, ReviewDecision, VerificationDocument
from app.services.account_status import promote_to_verified
from app.services.audit_log import create_log, CATEGORY_DOCUMENT_REVIEW
from app.services.clock import utcnow
from app.services.document_ledger import close_pending, get_document, insert_document, list_documents
from app.services.registration_status import compute_status

logger = logging.getLogger(__name__)

REJECTION_REASON_MAX_LEN = 2000


def parse_document_type(value: Any) -> DocumentType:
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType(str(value or "").strip().upper())
    except ValueError:
        allowed = ", ".join(t.value for t in DocumentType)
        raise ValidationError(f"Invalid document type. Must be one of: {allowed}")


def parse_decision(value: Any) -> ReviewDecision:
    if isinstance(value, ReviewDecision):
        return value
    try:
        return ReviewDecision(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("Decision must be APPROVED or REJECTED")


def upload(
    db: Session,
    owner_id: int,
    document_type: Any,
    file_ref: str,
    *,
    original_filename: str | None = None,
    content_type: str | None = None,
    size_bytes: int | None = None,
    now: datetime | None = None,
) -> VerificationDocument:
    """Record a new PENDING document. Size/MIME policy is applied by the upload boundary."""
    doc_type = parse_document_type(document_type)
    if not (file_ref or "").strip():
        raise ValidationError("File is required")
    if db.query(User.id).filter(User.id == owner_id).first() is None:
        raise NotFoundError("User not found")
    now = now or utcnow()
    try:
        doc = insert_document(
            db,
            owner_id,
            doc_type,
            file_ref,
            now,
            original_filename=original_filename,
            content_type=content_type,
            size_bytes=size_bytes,
        )
        create_log(
            db,
            CATEGORY_DOCUMENT_REVIEW,
            "Document submitted",
            f"{doc_type.value} submitted for review.",
            subject_user_id=owner_id,
            document_id=doc.id,
            actor_user_id=owner_id,
            meta={"document_type": doc_type, "content_type": content_type, "size_bytes": size_bytes},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(doc)
    logger.info("Document uploaded id=%s owner_id=%s type=%s", doc.id, owner_id, doc_type.value)
    return doc


def decide(
    db: Session,
    document_id: int,
    admin_id: int,
    decision: Any,
    reason: str | None = None,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> VerificationDocument:
    """Apply an administrator decision to a PENDING document.

    Raises ValidationError (rejection without reason), NotFoundError, or
    StaleStateError when the document was already decided, including by a
    concurrent reviewer.
    """
    settings = settings or get_settings()
    parsed = parse_decision(decision)
    reason = (reason or "").strip() or None
    if parsed == ReviewDecision.REJECTED:
        if not reason:
            raise ValidationError("Rejection reason is required")
        if len(reason) > REJECTION_REASON_MAX_LEN:
            raise ValidationError(f"Rejection reason cannot exceed {REJECTION_REASON_MAX_LEN} characters")
    else:
        reason = None

    doc = get_document(db, document_id)
    if doc is None:
        raise NotFoundError("Document not found")
    if doc.status != DocumentStatus.PENDING:
        raise StaleStateError(f"Document is already {doc.status.value}")

    now = now or utcnow()
    new_status = DocumentStatus(parsed.value)
    try:
        if not close_pending(db, doc.id, new_status, now, decided_by_user_id=admin_id, rejection_reason=reason):
            raise StaleStateError("Document was decided by another reviewer")
        create_log(
            db,
            CATEGORY_DOCUMENT_REVIEW,
            f"Document {new_status.value.lower()}",
            f"{doc.document_type.value} {new_status.value.lower()}." + (f" Reason: {reason}" if reason else ""),
            subject_user_id=doc.owner_id,
            document_id=doc.id,
            actor_user_id=admin_id,
            meta={"old_status": DocumentStatus.PENDING, "new_status": new_status, "reason": reason},
        )
        if new_status == DocumentStatus.APPROVED and settings.auto_promote_verified:
            _auto_promote(db, doc.owner_id, now)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(doc)
    logger.info("Document id=%s %s by admin_id=%s", doc.id, new_status.value, admin_id)
    return doc


def _auto_promote(db: Session, owner_id: int, now: datetime) -> None:
    # close_pending bypassed the identity map; reload so the new approval is counted
    db.flush()
    db.expire_all()
    user = db.query(User).filter(User.id == owner_id).first()
    progress = compute_status(user, list_documents(db, owner_id))
    if progress.email_verified and progress.documents_approved:
        promote_to_verified(db, user, now, automatic=True)


def status_for(db: Session, owner_id: int, document_type: Any = None) -> list[VerificationDocument]:
    doc_type = parse_document_type(document_type) if document_type not in (None, "") else None
    return list_documents(db, owner_id, doc_type)
