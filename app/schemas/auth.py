"""Registration, email verification and login schemas."""
from pydantic import EmailStr, field_validator

from app.models.user import UserRole, UserStatus
from app.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """Field presence and strength rules are enforced by the registration service."""
    email: str = ""
    password: str = ""
    role: str = ""
    company_name: str | None = None
    legal_number: str | None = None
    representative_name: str | None = None
    industry: str | None = None
    display_name: str | None = None

    def role_fields(self) -> dict:
        return {
            "company_name": self.company_name,
            "legal_number": self.legal_number,
            "representative_name": self.representative_name,
            "industry": self.industry,
            "display_name": self.display_name,
        }


class RegisterResponse(CamelModel):
    message: str = "Registration successful. Please verify your email address."
    user_id: int
    email: str
    role: UserRole
    status: UserStatus
    verification_email_sent: bool
    next_step: str = "Email verification"


class VerifyEmailResponse(CamelModel):
    message: str = "Email verified successfully"
    user_id: int
    email: str
    status: UserStatus
    next_step: str = "Submit identity verification documents"


class ResendVerificationRequest(CamelModel):
    email: str = ""


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(CamelModel):
    id: int
    email: str
    role: UserRole
    status: UserStatus
    email_verified: bool = False


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
