"""Shared dependencies: DB session, current user, notifier, blob store."""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.config import get_settings
from app.database import get_db
from app.errors import AuthenticationError, PermissionDeniedError
from app.models.user import User, UserRole
from app.services.auth import decode_token_with_error
from app.services.notifications import EmailNotifier
from app.services.storage import LocalBlobStore

security = HTTPBearer(auto_error=False)


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials:
        raise AuthenticationError()
    payload, _ = decode_token_with_error((credentials.credentials or "").strip())
    if not payload:
        raise AuthenticationError("Invalid or expired token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError("User not found")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise PermissionDeniedError("Admin role required")
    return current_user


def get_notifier() -> EmailNotifier:
    return EmailNotifier(get_settings())


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(get_settings().upload_dir)
