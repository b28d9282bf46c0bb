"""Email ownership verification: issue, verify and re-issue single-use tokens.

Per user: NO_TOKEN -> TOKEN_ISSUED -> CONSUMED | EXPIRED. Issuing a token
supersedes every outstanding one, so only the newest link ever works.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.errors import (
    AlreadyUsedError,
    ExpiredTokenError,
    InvalidTokenError,
    NotFoundError,
    NotificationError,
    TokenError,
    ValidationError,
)
from app.models.email_verification_token import EmailVerificationToken
from app.models.profile import CompanyProfile
from app.models.user import User, UserStatus
from app.services.audit_log import create_log, CATEGORY_EMAIL_VERIFICATION, CATEGORY_FAILED_ATTEMPT
from app.services.clock import as_utc, utcnow
from app.services.token_store import consume_token, create_token, find_token, has_newer_token

logger = logging.getLogger(__name__)

RESEND_ACCEPTED_MESSAGE = "If an account exists with this email, a verification email has been sent"


@dataclass(frozen=True)
class VerifiedEmail:
    user_id: int
    email: str
    status: UserStatus


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def issue(db: Session, user_id: int, *, now: datetime | None = None, settings: Settings | None = None) -> str:
    """Issue a new token for the user, superseding prior ones. Commits and returns the raw token."""
    settings = settings or get_settings()
    now = now or utcnow()
    ttl = timedelta(hours=settings.email_verification_token_expire_hours)
    try:
        raw, row = create_token(db, user_id, now, ttl)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Issued email verification token id=%s user_id=%s expires_at=%s", row.id, user_id, row.expires_at)
    return raw


def deliver_verification(notifier, user_id: int, email: str, raw: str) -> bool:
    try:
        notifier.send_verification(email, raw)
    except NotificationError as e:
        logger.warning("Verification email for user_id=%s not delivered: %s", user_id, e)
        return False
    return True


def send_verification(
    db: Session,
    user: User,
    notifier,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
    defer: Callable[..., Any] | None = None,
) -> bool:
    """Best-effort side effect run after the caller's transaction committed.

    Issues a token and hands it to the notifier. Failures are logged and
    reported as False; the account state they follow is already durable.
    With `defer` (e.g. BackgroundTasks.add_task) delivery is scheduled
    instead of run inline and True means "queued".
    """
    try:
        raw = issue(db, user.id, now=now, settings=settings)
    except SQLAlchemyError:
        logger.exception("Could not issue verification token for user_id=%s", user.id)
        return False
    if defer is not None:
        defer(deliver_verification, notifier, user.id, user.email, raw)
        return True
    return deliver_verification(notifier, user.id, user.email, raw)


def _classify(db: Session, row: EmailVerificationToken, now: datetime) -> TokenError | None:
    if row.consumed_at is not None:
        return AlreadyUsedError(superseded=row.superseded_at is not None)
    if has_newer_token(db, row):
        # Left unconsumed by a concurrent issue; a newer token replaced it
        return AlreadyUsedError(superseded=True)
    if as_utc(row.expires_at) <= now:
        return ExpiredTokenError()
    return None


def _record_failure(db: Session, error: TokenError, row: EmailVerificationToken | None) -> None:
    reason = "superseded" if error.context.get("superseded") else error.reason
    logger.info("Email verification failed: reason=%s token_id=%s", reason, row.id if row else None)
    create_log(
        db,
        CATEGORY_FAILED_ATTEMPT,
        "Email verification failed",
        f"Verification token rejected ({reason}).",
        subject_user_id=row.user_id if row else None,
        meta={"reason": reason, "token_id": row.id if row else None},
    )
    db.commit()


def verify(db: Session, token: str, *, now: datetime | None = None) -> VerifiedEmail:
    """Consume the token and mark the owner's email verified.

    Raises InvalidTokenError, ExpiredTokenError or AlreadyUsedError; the user
    row is only touched after the conditional consume succeeded.
    """
    now = now or utcnow()
    raw = (token or "").strip()
    row = find_token(db, raw) if raw else None
    if row is None:
        error = InvalidTokenError()
        _record_failure(db, error, None)
        raise error
    error = _classify(db, row, now)
    if error:
        _record_failure(db, error, row)
        raise error

    try:
        if not consume_token(db, row.id, now):
            # Lost the race to a concurrent verify, or expired between read and write
            db.rollback()
            db.refresh(row)
            error = _classify(db, row, now) or AlreadyUsedError()
            _record_failure(db, error, row)
            raise error

        user = db.query(User).filter(User.id == row.user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        previous_status = user.status
        db.query(User).filter(User.id == user.id, User.email_verified_at.is_(None)).update(
            {User.email_verified_at: now}, synchronize_session=False
        )
        advanced = db.query(User).filter(User.id == user.id, User.status == UserStatus.PROVISIONAL).update(
            {User.status: UserStatus.VERIFICATION_PENDING}, synchronize_session=False
        )
        if advanced:
            db.query(CompanyProfile).filter(
                CompanyProfile.user_id == user.id, CompanyProfile.status == UserStatus.PROVISIONAL
            ).update({CompanyProfile.status: UserStatus.VERIFICATION_PENDING}, synchronize_session=False)
        create_log(
            db,
            CATEGORY_EMAIL_VERIFICATION,
            "Email verified",
            f"Email {user.email} verified.",
            subject_user_id=user.id,
            actor_user_id=user.id,
            actor_email=user.email,
            meta={"token_id": row.id, "old_status": previous_status, "status_advanced": bool(advanced)},
        )
        db.commit()
    except TokenError:
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Email verified user_id=%s status=%s", user.id, user.status.value)
    return VerifiedEmail(user_id=user.id, email=user.email, status=user.status)


def resend(db: Session, user_id: int, notifier, *, now: datetime | None = None, settings: Settings | None = None) -> bool:
    """Issue a fresh token for an unverified user and send it again."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    if user.email_verified_at is not None:
        raise ValidationError("Email already verified")
    return send_verification(db, user, notifier, now=now, settings=settings)


def resend_by_email(
    db: Session,
    email: str,
    notifier,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
    defer: Callable[..., Any] | None = None,
) -> str:
    """Resend entry point keyed by email. Returns the same message whether or not the account exists.

    Pass `defer` so the provider call happens after the response and response
    time does not reveal whether the email is registered.
    """
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required")
    user = db.query(User).filter(User.email == normalized).first()
    if user is None:
        logger.info("Resend requested for unknown email")
    elif user.email_verified_at is not None:
        logger.info("Resend requested for already verified user_id=%s", user.id)
    else:
        send_verification(db, user, notifier, now=now, settings=settings, defer=defer)
    return RESEND_ACCEPTED_MESSAGE
