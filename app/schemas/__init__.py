from app.schemas.auth import RegisterRequest, RegisterResponse, VerifyEmailResponse, ResendVerificationRequest, LoginRequest, Token, UserResponse
from app.schemas.common import MessageResponse
from app.schemas.documents import DocumentResponse, UploadResponse, DocumentListResponse, RejectRequest, DecisionResponse
from app.schemas.status import RegistrationStatusResponse, AuditLogEntry
