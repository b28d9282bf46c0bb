"""Append-only audit trail for onboarding transitions and failed attempts.

Rows are only ever inserted. create_log flushes but never commits, so an entry
lands in the same transaction as the state change it describes.
"""
import enum
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog

CATEGORY_REGISTRATION = "registration"
CATEGORY_EMAIL_VERIFICATION = "email_verification"
CATEGORY_DOCUMENT_REVIEW = "document_review"
CATEGORY_ACCOUNT_STATUS = "account_status"
CATEGORY_FAILED_ATTEMPT = "failed_attempt"

CATEGORIES = frozenset(
    {
        CATEGORY_REGISTRATION,
        CATEGORY_EMAIL_VERIFICATION,
        CATEGORY_DOCUMENT_REVIEW,
        CATEGORY_ACCOUNT_STATUS,
        CATEGORY_FAILED_ATTEMPT,
    }
)

_TITLE_LEN = 255
_EMAIL_LEN = 255
_MESSAGE_LEN = 100_000


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def create_log(
    db: Session,
    category: str,
    title: str,
    message: str,
    *,
    subject_user_id: int | None = None,
    document_id: int | None = None,
    actor_user_id: int | None = None,
    actor_email: str | None = None,
    meta: dict[str, Any] | None = None,
) -> AuditLog:
    if category not in CATEGORIES:
        raise ValueError(f"unknown audit category: {category}")
    entry = AuditLog(
        category=category,
        title=(title or "-")[:_TITLE_LEN],
        message=(message or "-")[:_MESSAGE_LEN],
        subject_user_id=subject_user_id,
        document_id=document_id,
        actor_user_id=actor_user_id,
        actor_email=actor_email[:_EMAIL_LEN] if actor_email else None,
        meta=_jsonable(meta) if meta is not None else None,
    )
    db.add(entry)
    db.flush()
    return entry


def logs_for_user(db: Session, user_id: int, category: str | None = None) -> list[AuditLog]:
    """Entries about a user, oldest first."""
    q = db.query(AuditLog).filter(AuditLog.subject_user_id == user_id)
    if category is not None:
        q = q.filter(AuditLog.category == category)
    return q.order_by(AuditLog.created_at.asc(), AuditLog.id.asc()).all()
