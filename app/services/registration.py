"""Account registration: User + role profile in one transaction, then the verification email."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.errors import ConflictError, InternalError, OnboardingError, ValidationError
from app.models.user import SELF_REGISTER_ROLES, User, UserRole, UserStatus
from app.services.audit_log import create_log, CATEGORY_REGISTRATION
from app.services.auth import get_password_hash, password_policy_violation
from app.services.email_verification import normalize_email, send_verification
from app.services.profiles import create_profile, validate_role_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredAccount:
    user_id: int
    email: str
    role: UserRole
    status: UserStatus
    verification_email_sent: bool


def _parse_role(role: Any) -> UserRole:
    if role is None or role == "":
        raise ValidationError("Email, password, and role are required")
    try:
        parsed = role if isinstance(role, UserRole) else UserRole(str(role).strip().upper())
    except ValueError:
        raise ValidationError("Invalid role. Must be COMPANY or INFLUENCER")
    if parsed not in SELF_REGISTER_ROLES:
        raise ValidationError("Invalid role. Must be COMPANY or INFLUENCER")
    return parsed


def email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def validate_registration(email: str | None, password: str | None, role: Any, role_fields: dict[str, Any] | None, settings: Settings) -> tuple[str, UserRole, dict]:
    """Check input before opening the transaction. Returns (normalized email, role, cleaned role fields)."""
    normalized = normalize_email(email)
    if not normalized or not password:
        raise ValidationError("Email, password, and role are required")
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email address")
    parsed_role = _parse_role(role)
    if settings.is_production:
        violation = password_policy_violation(password)
        if violation:
            raise ValidationError(violation)
    fields = validate_role_fields(parsed_role, role_fields)
    return normalized, parsed_role, fields


def register(
    db: Session,
    email: str,
    password: str,
    role: Any,
    role_fields: dict[str, Any] | None = None,
    *,
    notifier=None,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> RegisteredAccount:
    """Create a PROVISIONAL account and its profile atomically, then send the verification email.

    Raises ValidationError for bad input and ConflictError when the normalized
    email is taken. A failed email send leaves the account in place.
    """
    settings = settings or get_settings()
    normalized, parsed_role, fields = validate_registration(email, password, role, role_fields, settings)

    try:
        if email_taken(db, normalized):
            raise ConflictError()
        user = User(
            email=normalized,
            hashed_password=get_password_hash(password),
            role=parsed_role,
            status=UserStatus.PROVISIONAL,
        )
        db.add(user)
        # The unique index on email is the real guard; a concurrent insert fails here or at commit
        db.flush()
        profile = create_profile(db, user, fields)
        create_log(
            db,
            CATEGORY_REGISTRATION,
            "Account registered",
            f"{parsed_role.value} account registered for {normalized}.",
            subject_user_id=user.id,
            actor_user_id=user.id,
            actor_email=normalized,
            meta={"role": parsed_role, "profile_id": profile.id},
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Registration conflict for email (unique constraint)")
        raise ConflictError()
    except OnboardingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Registration failed for role=%s", parsed_role.value)
        raise InternalError(str(e))
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info("Registered user_id=%s role=%s", user.id, user.role.value)

    sent = False
    if notifier is not None:
        sent = send_verification(db, user, notifier, now=now, settings=settings)
    return RegisteredAccount(
        user_id=user.id,
        email=user.email,
        role=user.role,
        status=user.status,
        verification_email_sent=sent,
    )
