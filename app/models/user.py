"""Accounts and their verification status."""
from sqlalchemy import Column, Integer, String, Enum as SQLEnum, DateTime
from sqlalchemy.sql import func
from app.database import Base
import enum


class UserRole(str, enum.Enum):
    COMPANY = "COMPANY"
    INFLUENCER = "INFLUENCER"
    ADMIN = "ADMIN"


# Roles a client may pick at self-registration
SELF_REGISTER_ROLES = (UserRole.COMPANY, UserRole.INFLUENCER)


class UserStatus(str, enum.Enum):
    """PROVISIONAL -> VERIFICATION_PENDING -> VERIFIED. SUSPENDED is set by admin action only."""
    PROVISIONAL = "PROVISIONAL"
    VERIFICATION_PENDING = "VERIFICATION_PENDING"
    VERIFIED = "VERIFIED"
    SUSPENDED = "SUSPENDED"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Stored lower-cased and trimmed; the unique index is what serializes concurrent signups
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False)
    status = Column(SQLEnum(UserStatus, name="user_status"), nullable=False, default=UserStatus.PROVISIONAL)

    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)  # when status reached VERIFIED

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def email_verified(self) -> bool:
        return self.email_verified_at is not None
