"""Persistence for email verification tokens.

Only hashes are stored. Writes that decide who wins a race (supersede, consume)
are single conditional UPDATEs; the caller owns the transaction.
"""
import hashlib
import secrets
from datetime import datetime, timedelta

from sqlalchemy import exists
from sqlalchemy.orm import Session, aliased

from app.models.email_verification_token import EmailVerificationToken
from app.models.user import User

TOKEN_BYTES = 32


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def supersede_outstanding(db: Session, user_id: int, now: datetime) -> int:
    """Mark every unconsumed token of the user as consumed-without-effect. Returns rows affected."""
    return (
        db.query(EmailVerificationToken)
        .filter(
            EmailVerificationToken.user_id == user_id,
            EmailVerificationToken.consumed_at.is_(None),
        )
        .update(
            {
                EmailVerificationToken.consumed_at: now,
                EmailVerificationToken.superseded_at: now,
            },
            synchronize_session=False,
        )
    )


def create_token(db: Session, user_id: int, now: datetime, ttl: timedelta) -> tuple[str, EmailVerificationToken]:
    """Supersede outstanding tokens and insert a fresh one. Returns (raw token, row).

    The user row is locked first so concurrent issues for one user run one after another.
    """
    db.query(User.id).filter(User.id == user_id).with_for_update().first()
    supersede_outstanding(db, user_id, now)
    raw = generate_token()
    row = EmailVerificationToken(
        user_id=user_id,
        token_hash=hash_token(raw),
        issued_at=now,
        expires_at=now + ttl,
    )
    db.add(row)
    db.flush()
    return raw, row


def find_token(db: Session, raw: str) -> EmailVerificationToken | None:
    return db.query(EmailVerificationToken).filter(EmailVerificationToken.token_hash == hash_token(raw)).first()


def consume_token(db: Session, token_id: int, now: datetime) -> bool:
    """Set consumed_at if the token is unconsumed, unexpired and the newest for its user. False otherwise."""
    updated = (
        db.query(EmailVerificationToken)
        .filter(
            EmailVerificationToken.id == token_id,
            EmailVerificationToken.consumed_at.is_(None),
            EmailVerificationToken.expires_at > now,
            ~_newer_token(token_id, EmailVerificationToken.user_id),
        )
        .update({EmailVerificationToken.consumed_at: now}, synchronize_session=False)
    )
    return updated == 1


def _newer_token(token_id: int, user_id):
    newer = aliased(EmailVerificationToken)
    return exists().where(newer.user_id == user_id, newer.id > token_id)


def has_newer_token(db: Session, row: EmailVerificationToken) -> bool:
    """True if a later token was issued for the same user; only the newest one is ever accepted."""
    return db.query(_newer_token(row.id, row.user_id)).scalar()
