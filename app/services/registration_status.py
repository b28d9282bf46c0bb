"""Composite readiness view of an account.

compute_status is pure: it only looks at the user row and its documents.
"""
from dataclasses import dataclass, field
from typing import Iterable

from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.user import User, UserStatus
from app.models.verification_document import (
    REQUIRED_DOCUMENT_TYPES,
    DocumentStatus,
    DocumentType,
    VerificationDocument,
)
from app.services.document_ledger import list_documents

STEP_VERIFY_EMAIL = "Verify email address"
STEP_SUBMIT_DOCUMENTS = "Submit identity verification documents"
STEP_AWAIT_REVIEW = "Wait for document review"
STEP_AWAIT_GRANT = "Wait for account verification by an administrator"
STEP_DONE = "Account fully verified - Ready to use platform"


@dataclass(frozen=True)
class RegistrationProgress:
    email_verified: bool
    documents_approved: bool
    fully_verified: bool
    completion_percentage: int
    next_steps: list[str]
    # Latest status per required type; None when nothing was submitted
    required_documents: dict[DocumentType, DocumentStatus | None] = field(default_factory=dict)


def _latest_by_type(documents: Iterable[VerificationDocument]) -> dict[DocumentType, VerificationDocument]:
    latest: dict[DocumentType, VerificationDocument] = {}
    for doc in documents:
        current = latest.get(doc.document_type)
        if current is None or (doc.submitted_at, doc.id) > (current.submitted_at, current.id):
            latest[doc.document_type] = doc
    return latest


def compute_status(user: User, documents: Iterable[VerificationDocument]) -> RegistrationProgress:
    documents = list(documents)
    required = REQUIRED_DOCUMENT_TYPES.get(user.role, ())
    approved_types = {d.document_type for d in documents if d.status == DocumentStatus.APPROVED}
    latest = _latest_by_type(documents)

    email_verified = user.email_verified_at is not None
    documents_approved = all(t in approved_types for t in required)
    fully_verified = email_verified and documents_approved and user.status == UserStatus.VERIFIED

    if email_verified and documents_approved:
        completion = 100
    elif email_verified:
        completion = 50
    else:
        completion = 0

    required_documents = {}
    for t in required:
        if t in approved_types:
            required_documents[t] = DocumentStatus.APPROVED
        else:
            required_documents[t] = latest[t].status if t in latest else None

    steps: list[str] = []
    if fully_verified:
        steps.append(STEP_DONE)
    else:
        if not email_verified:
            steps.append(STEP_VERIFY_EMAIL)
        if not documents_approved:
            awaiting = [t for t, s in required_documents.items() if s == DocumentStatus.PENDING]
            missing = [t for t, s in required_documents.items() if s != DocumentStatus.PENDING]
            if missing:
                steps.append(STEP_SUBMIT_DOCUMENTS)
            if awaiting:
                steps.append(STEP_AWAIT_REVIEW)
        if email_verified and documents_approved:
            steps.append(STEP_AWAIT_GRANT)

    return RegistrationProgress(
        email_verified=email_verified,
        documents_approved=documents_approved,
        fully_verified=fully_verified,
        completion_percentage=completion,
        next_steps=steps,
        required_documents=required_documents,
    )


def get_registration_status(db: Session, user_id: int) -> tuple[User, list[VerificationDocument], RegistrationProgress]:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    documents = list_documents(db, user.id)
    return user, documents, compute_status(user, documents)
