"""Registration progress schemas."""
from datetime import datetime

from app.models.user import UserRole, UserStatus
from app.models.verification_document import DocumentStatus, DocumentType
from app.schemas.common import CamelModel
from app.schemas.documents import DocumentResponse


class StatusUser(CamelModel):
    id: int
    email: str
    role: UserRole
    status: UserStatus


class Progress(CamelModel):
    email_verified: bool
    documents_approved: bool
    fully_verified: bool
    completion_percentage: int


class RegistrationStatusResponse(CamelModel):
    user: StatusUser
    progress: Progress
    required_documents: dict[DocumentType, DocumentStatus | None]
    documents: list[DocumentResponse]
    next_steps: list[str]


class AuditLogEntry(CamelModel):
    id: int
    category: str
    title: str
    message: str
    meta: dict | None = None
    actor_user_id: int | None = None
    actor_email: str | None = None
    document_id: int | None = None
    created_at: datetime | None = None
