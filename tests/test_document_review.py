from datetime import timedelta

import pytest

from app.config import Settings
from app.errors import NotFoundError, StaleStateError, ValidationError
from app.models.audit_log import AuditLog
from app.models.profile import CompanyProfile
from app.models.user import User, UserStatus
from app.models.verification_document import DocumentStatus, DocumentType, VerificationDocument
from app.services import document_review, email_verification, registration
from app.services.document_ledger import close_pending


@pytest.fixture
def company(db, notifier, settings, now):
    account = registration.register(
        db, "acme@example.com", "pw", "COMPANY", {"company_name": "Acme"}, notifier=notifier, now=now, settings=settings
    )
    return db.query(User).filter(User.id == account.user_id).one()


def _upload(db, owner_id, doc_type=DocumentType.BUSINESS_REGISTRATION, now=None):
    return document_review.upload(
        db, owner_id, doc_type, f"local://{owner_id}/file.pdf", content_type="application/pdf", size_bytes=1024, now=now
    )


def test_upload_creates_pending_row(db, company, now):
    doc = _upload(db, company.id, now=now)

    assert doc.status == DocumentStatus.PENDING
    assert doc.owner_id == company.id
    assert doc.decided_at is None
    assert doc.size_bytes == 1024
    assert db.query(AuditLog).filter(AuditLog.document_id == doc.id).count() == 1


def test_upload_rejects_unknown_type_and_owner(db, company):
    with pytest.raises(ValidationError, match="Invalid document type"):
        _upload(db, company.id, doc_type="PASSPORT_SELFIE")
    with pytest.raises(NotFoundError):
        _upload(db, 9999)
    with pytest.raises(ValidationError):
        document_review.upload(db, company.id, DocumentType.ID_DOCUMENT, "  ")
    assert db.query(VerificationDocument).count() == 0


def test_document_type_parsing_is_case_insensitive():
    assert document_review.parse_document_type(" id_document ") == DocumentType.ID_DOCUMENT


def test_approve_sets_decided_at(db, company, admin, now):
    doc = _upload(db, company.id, now=now)

    decided = document_review.decide(db, doc.id, admin.id, "APPROVED", now=now + timedelta(hours=1))

    assert decided.status == DocumentStatus.APPROVED
    assert decided.decided_at is not None
    assert decided.decided_by_user_id == admin.id
    assert decided.rejection_reason is None


def test_reject_requires_reason(db, company, admin):
    doc = _upload(db, company.id)

    with pytest.raises(ValidationError, match="reason"):
        document_review.decide(db, doc.id, admin.id, "REJECTED")
    with pytest.raises(ValidationError, match="reason"):
        document_review.decide(db, doc.id, admin.id, "REJECTED", "   ")

    db.refresh(doc)
    assert doc.status == DocumentStatus.PENDING


def test_unknown_decision_and_document(db, company, admin):
    doc = _upload(db, company.id)
    with pytest.raises(ValidationError):
        document_review.decide(db, doc.id, admin.id, "MAYBE")
    with pytest.raises(NotFoundError):
        document_review.decide(db, 9999, admin.id, "APPROVED")


def test_second_decision_is_stale_and_keeps_decided_at(db, company, admin, now):
    doc = _upload(db, company.id, now=now)
    first = document_review.decide(db, doc.id, admin.id, "REJECTED", "Blurry scan", now=now + timedelta(hours=1))
    decided_at = first.decided_at

    with pytest.raises(StaleStateError):
        document_review.decide(db, doc.id, admin.id, "APPROVED", now=now + timedelta(hours=2))

    db.refresh(doc)
    assert doc.status == DocumentStatus.REJECTED
    assert doc.rejection_reason == "Blurry scan"
    assert doc.decided_at == decided_at


def test_conditional_close_only_succeeds_once(db, company, admin, now):
    doc = _upload(db, company.id, now=now)
    assert close_pending(db, doc.id, DocumentStatus.APPROVED, now, decided_by_user_id=admin.id) is True
    assert close_pending(db, doc.id, DocumentStatus.REJECTED, now, rejection_reason="late") is False
    db.commit()
    db.refresh(doc)
    assert doc.status == DocumentStatus.APPROVED


def test_concurrent_reviewer_gets_stale_state(db, company, admin, now, monkeypatch):
    doc = _upload(db, company.id, now=now)
    # Another reviewer decides between our read and our conditional update
    original_close = document_review.close_pending

    def racing_close(db, document_id, status, now, **kwargs):
        original_close(db, document_id, DocumentStatus.APPROVED, now, decided_by_user_id=admin.id)
        return original_close(db, document_id, status, now, **kwargs)

    monkeypatch.setattr(document_review, "close_pending", racing_close)

    with pytest.raises(StaleStateError):
        document_review.decide(db, doc.id, admin.id, "REJECTED", "Expired ID", now=now)

    db.refresh(doc)
    # Our transaction rolled back, including the racing write made on the same session
    assert doc.status == DocumentStatus.PENDING


def test_resubmission_after_rejection_creates_new_row(db, company, admin, now):
    rejected = _upload(db, company.id, now=now)
    document_review.decide(db, rejected.id, admin.id, "REJECTED", "Wrong company", now=now + timedelta(minutes=1))

    resubmitted = _upload(db, company.id, now=now + timedelta(minutes=2))

    assert resubmitted.id != rejected.id
    assert resubmitted.status == DocumentStatus.PENDING
    db.refresh(rejected)
    assert rejected.status == DocumentStatus.REJECTED

    docs = document_review.status_for(db, company.id, "BUSINESS_REGISTRATION")
    assert [d.id for d in docs] == [resubmitted.id, rejected.id]
    assert document_review.status_for(db, company.id, DocumentType.ID_DOCUMENT) == []


def test_auto_promotion_on_last_required_approval(db, notifier, company, admin, now):
    email_verification.verify(db, notifier.last_token_for(company.email), now=now)
    doc = _upload(db, company.id, now=now)

    document_review.decide(db, doc.id, admin.id, "APPROVED", now=now, settings=Settings(auto_promote_verified=True))

    db.refresh(company)
    assert company.status == UserStatus.VERIFIED
    assert company.verified_at is not None
    assert db.query(CompanyProfile).one().is_verified is True


def test_no_auto_promotion_by_default(db, notifier, company, admin, now, settings):
    email_verification.verify(db, notifier.last_token_for(company.email), now=now)
    doc = _upload(db, company.id, now=now)

    document_review.decide(db, doc.id, admin.id, "APPROVED", now=now, settings=settings)

    db.refresh(company)
    assert company.status == UserStatus.VERIFICATION_PENDING
