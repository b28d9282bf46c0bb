from datetime import datetime, timedelta, timezone

import pytest

from app.errors import NotFoundError
from app.models.user import User, UserRole, UserStatus
from app.models.verification_document import DocumentStatus, DocumentType, VerificationDocument
from app.services import registration_status
from app.services.registration_status import (
    STEP_AWAIT_GRANT,
    STEP_AWAIT_REVIEW,
    STEP_DONE,
    STEP_SUBMIT_DOCUMENTS,
    STEP_VERIFY_EMAIL,
    compute_status,
)

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _user(role=UserRole.COMPANY, status=UserStatus.PROVISIONAL, email_verified=False):
    return User(
        id=1,
        email="u@example.com",
        role=role,
        status=status,
        email_verified_at=T0 if email_verified else None,
    )


def _doc(doc_id, doc_type, status, minutes=0):
    return VerificationDocument(
        id=doc_id,
        owner_id=1,
        document_type=doc_type,
        status=status,
        file_ref="local://1/x.pdf",
        submitted_at=T0 + timedelta(minutes=minutes),
    )


def test_fresh_account():
    progress = compute_status(_user(), [])

    assert progress.email_verified is False
    assert progress.documents_approved is False
    assert progress.fully_verified is False
    assert progress.completion_percentage == 0
    assert progress.next_steps == [STEP_VERIFY_EMAIL, STEP_SUBMIT_DOCUMENTS]
    assert progress.required_documents == {DocumentType.BUSINESS_REGISTRATION: None}


def test_no_documents_is_not_vacuously_approved():
    progress = compute_status(_user(status=UserStatus.VERIFICATION_PENDING, email_verified=True), [])

    assert progress.documents_approved is False
    assert progress.completion_percentage == 50
    assert progress.next_steps == [STEP_SUBMIT_DOCUMENTS]


def test_pending_required_document_waits_for_review():
    user = _user(status=UserStatus.VERIFICATION_PENDING, email_verified=True)
    progress = compute_status(user, [_doc(1, DocumentType.BUSINESS_REGISTRATION, DocumentStatus.PENDING)])

    assert progress.completion_percentage == 50
    assert progress.next_steps == [STEP_AWAIT_REVIEW]
    assert progress.required_documents[DocumentType.BUSINESS_REGISTRATION] == DocumentStatus.PENDING


def test_optional_document_types_do_not_count():
    user = _user(status=UserStatus.VERIFICATION_PENDING, email_verified=True)
    progress = compute_status(user, [_doc(1, DocumentType.INVOICE_DOCUMENT, DocumentStatus.APPROVED)])

    assert progress.documents_approved is False


def test_rejected_then_approved_resubmission_counts():
    user = _user(status=UserStatus.VERIFICATION_PENDING, email_verified=True)
    docs = [
        _doc(1, DocumentType.BUSINESS_REGISTRATION, DocumentStatus.REJECTED, minutes=0),
        _doc(2, DocumentType.BUSINESS_REGISTRATION, DocumentStatus.APPROVED, minutes=5),
    ]

    progress = compute_status(user, docs)

    assert progress.documents_approved is True
    assert progress.completion_percentage == 100
    assert progress.fully_verified is False
    assert progress.next_steps == [STEP_AWAIT_GRANT]


def test_latest_rejection_with_no_approval_asks_for_resubmission():
    user = _user(status=UserStatus.VERIFICATION_PENDING, email_verified=True)
    docs = [_doc(1, DocumentType.BUSINESS_REGISTRATION, DocumentStatus.REJECTED)]

    progress = compute_status(user, docs)

    assert progress.required_documents[DocumentType.BUSINESS_REGISTRATION] == DocumentStatus.REJECTED
    assert progress.next_steps == [STEP_SUBMIT_DOCUMENTS]


def test_influencer_requires_id_document():
    user = _user(role=UserRole.INFLUENCER, status=UserStatus.VERIFICATION_PENDING, email_verified=True)

    assert compute_status(user, [_doc(1, DocumentType.BUSINESS_REGISTRATION, DocumentStatus.APPROVED)]).documents_approved is False
    assert compute_status(user, [_doc(1, DocumentType.ID_DOCUMENT, DocumentStatus.APPROVED)]).documents_approved is True


def test_fully_verified_needs_granted_status():
    docs = [_doc(1, DocumentType.BUSINESS_REGISTRATION, DocumentStatus.APPROVED)]
    progress = compute_status(_user(status=UserStatus.VERIFIED, email_verified=True), docs)

    assert progress.fully_verified is True
    assert progress.next_steps == [STEP_DONE]


def test_verified_status_without_evidence_is_not_fully_verified():
    progress = compute_status(_user(status=UserStatus.VERIFIED, email_verified=False), [])
    assert progress.fully_verified is False
    assert progress.completion_percentage == 0


def test_get_registration_status_unknown_user(db):
    with pytest.raises(NotFoundError):
        registration_status.get_registration_status(db, 404)
