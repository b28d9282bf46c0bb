"""Granting VERIFIED status once the evidence is in order."""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.errors import NotFoundError, StaleStateError, ValidationError
from app.models.profile import CompanyProfile, InfluencerProfile
from app.models.user import User, UserStatus
from app.services.audit_log import create_log, CATEGORY_ACCOUNT_STATUS
from app.services.clock import utcnow
from app.services.document_ledger import list_documents
from app.services.registration_status import compute_status

logger = logging.getLogger(__name__)


def promote_to_verified(db: Session, user: User, now: datetime, *, actor_user_id: int | None = None, automatic: bool = False) -> bool:
    """Flip VERIFICATION_PENDING -> VERIFIED inside the caller's transaction. False if the status moved meanwhile."""
    updated = (
        db.query(User)
        .filter(User.id == user.id, User.status == UserStatus.VERIFICATION_PENDING)
        .update({User.status: UserStatus.VERIFIED, User.verified_at: now}, synchronize_session=False)
    )
    if not updated:
        return False
    db.query(CompanyProfile).filter(CompanyProfile.user_id == user.id).update(
        {CompanyProfile.status: UserStatus.VERIFIED, CompanyProfile.is_verified: True}, synchronize_session=False
    )
    db.query(InfluencerProfile).filter(InfluencerProfile.user_id == user.id).update(
        {InfluencerProfile.is_registered: True}, synchronize_session=False
    )
    create_log(
        db,
        CATEGORY_ACCOUNT_STATUS,
        "Account verified",
        f"Account {user.email} granted VERIFIED status{' automatically' if automatic else ''}.",
        subject_user_id=user.id,
        actor_user_id=actor_user_id,
        meta={"old_status": UserStatus.VERIFICATION_PENDING, "new_status": UserStatus.VERIFIED, "automatic": automatic},
    )
    return True


def grant_verified(db: Session, user_id: int, admin_id: int, *, now: datetime | None = None) -> User:
    """Administrator action: grant VERIFIED to an account whose email and required documents are approved."""
    now = now or utcnow()
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    progress = compute_status(user, list_documents(db, user.id))
    if not (progress.email_verified and progress.documents_approved):
        raise ValidationError("Email and all required documents must be verified first")
    try:
        if not promote_to_verified(db, user, now, actor_user_id=admin_id):
            raise StaleStateError(f"Account status is {user.status.value}, expected VERIFICATION_PENDING")
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Granted VERIFIED user_id=%s by admin_id=%s", user.id, admin_id)
    return user
