"""Identity/business documents submitted for administrator review."""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.user import UserRole
import enum


class DocumentType(str, enum.Enum):
    BUSINESS_REGISTRATION = "BUSINESS_REGISTRATION"
    ID_DOCUMENT = "ID_DOCUMENT"
    INVOICE_DOCUMENT = "INVOICE_DOCUMENT"


class DocumentStatus(str, enum.Enum):
    """PENDING -> APPROVED | REJECTED, exactly once per row."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReviewDecision(str, enum.Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Types that must each have an APPROVED row before documents count as approved
REQUIRED_DOCUMENT_TYPES: dict[UserRole, tuple[DocumentType, ...]] = {
    UserRole.COMPANY: (DocumentType.BUSINESS_REGISTRATION,),
    UserRole.INFLUENCER: (DocumentType.ID_DOCUMENT,),
    UserRole.ADMIN: (),
}


class VerificationDocument(Base):
    __tablename__ = "verification_documents"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(SQLEnum(DocumentType, name="document_type"), nullable=False)
    status = Column(SQLEnum(DocumentStatus, name="document_status"), nullable=False, default=DocumentStatus.PENDING)
    rejection_reason = Column(Text, nullable=True)

    # Blob store reference plus what the client told us about the file
    file_ref = Column(String(512), nullable=False)
    original_filename = Column(String(255), nullable=True)
    content_type = Column(String(100), nullable=True)
    size_bytes = Column(Integer, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=False)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    decided_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    owner = relationship("User", foreign_keys=[owner_id], backref="verification_documents")
