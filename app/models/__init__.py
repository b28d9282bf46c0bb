"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table.
"""
from app.models.user import User, UserRole, UserStatus
from app.models.profile import CompanyProfile, InfluencerProfile
from app.models.email_verification_token import EmailVerificationToken
from app.models.verification_document import (
    VerificationDocument,
    DocumentType,
    DocumentStatus,
    ReviewDecision,
    REQUIRED_DOCUMENT_TYPES,
)
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "CompanyProfile",
    "InfluencerProfile",
    "EmailVerificationToken",
    "VerificationDocument",
    "DocumentType",
    "DocumentStatus",
    "ReviewDecision",
    "REQUIRED_DOCUMENT_TYPES",
    "AuditLog",
]
