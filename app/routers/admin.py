"""Administrator review queue and account promotion."""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_notifier, require_admin
from app.errors import NotificationError
from app.models.user import User
from app.models.verification_document import DocumentStatus, VerificationDocument
from app.schemas.auth import UserResponse
from app.schemas.documents import DocumentListResponse, DocumentResponse
from app.schemas.status import AuditLogEntry
from app.services.account_status import grant_verified
from app.services.audit_log import logs_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/documents/pending", response_model=DocumentListResponse)
def pending_documents(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Oldest submissions first."""
    docs = (
        db.query(VerificationDocument)
        .filter(VerificationDocument.status == DocumentStatus.PENDING)
        .order_by(VerificationDocument.submitted_at.asc(), VerificationDocument.id.asc())
        .all()
    )
    return DocumentListResponse(documents=[DocumentResponse.model_validate(d) for d in docs])


@router.post("/users/{user_id}/grant-verified", response_model=UserResponse)
def grant_verified_status(
    user_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    notifier=Depends(get_notifier),
):
    user = grant_verified(db, user_id, admin.id)
    try:
        notifier.send_account_verified(user.email)
    except NotificationError as e:
        logger.warning("Account verified email for user_id=%s not delivered: %s", user.id, e)
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}/audit-log", response_model=list[AuditLogEntry])
def user_audit_log(
    user_id: int,
    category: str | None = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return [AuditLogEntry.model_validate(e) for e in logs_for_user(db, user_id, category)]
