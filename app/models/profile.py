"""Role-specific profiles. Exactly one per user, matching User.role."""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum as SQLEnum, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.user import UserStatus


class CompanyProfile(Base):
    __tablename__ = "company_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    company_name = Column(String(255), nullable=False)
    legal_number = Column(String(64), nullable=True)
    representative_name = Column(String(255), nullable=True)
    industry = Column(String(128), nullable=True)

    status = Column(SQLEnum(UserStatus, name="company_status"), nullable=False, default=UserStatus.PROVISIONAL)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", backref="company_profile")


class InfluencerProfile(Base):
    __tablename__ = "influencer_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    display_name = Column(String(255), nullable=False)
    is_registered = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", backref="influencer_profile")
