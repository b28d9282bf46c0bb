"""Login and current-user endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.errors import AuthenticationError
from app.models.user import User
from app.schemas.auth import LoginRequest, Token, UserResponse
from app.services.audit_log import create_log, CATEGORY_FAILED_ATTEMPT
from app.services.auth import create_access_token, verify_password

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.hashed_password):
        create_log(
            db,
            CATEGORY_FAILED_ATTEMPT,
            "Login failed",
            f"Failed login attempt for email: {data.email}.",
            actor_email=data.email,
            meta={"reason": "invalid_email_or_password"},
        )
        db.commit()
        raise AuthenticationError("Invalid email or password")
    token = create_access_token(user.id, user.email, user.role)
    return Token(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)
