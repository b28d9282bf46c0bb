"""Registration, email verification and registration progress."""
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user, get_notifier
from app.models.user import User
from app.schemas.auth import RegisterRequest, RegisterResponse, ResendVerificationRequest, VerifyEmailResponse
from app.schemas.common import MessageResponse
from app.schemas.documents import DocumentResponse
from app.schemas.status import Progress, RegistrationStatusResponse, StatusUser
from app.services import email_verification, registration
from app.services.registration_status import get_registration_status

router = APIRouter(prefix="/registration", tags=["registration"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db), notifier=Depends(get_notifier)):
    account = registration.register(
        db,
        data.email,
        data.password,
        data.role,
        data.role_fields(),
        notifier=notifier,
    )
    return RegisterResponse(
        user_id=account.user_id,
        email=account.email,
        role=account.role,
        status=account.status,
        verification_email_sent=account.verification_email_sent,
    )


@router.get("/verify-email", response_model=VerifyEmailResponse)
def verify_email(token: str = Query(""), db: Session = Depends(get_db)):
    result = email_verification.verify(db, token)
    return VerifyEmailResponse(user_id=result.user_id, email=result.email, status=result.status)


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    data: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
):
    """Always answers the same way for unknown, unverified and verified emails. Delivery runs after the response."""
    message = email_verification.resend_by_email(db, data.email, notifier, defer=background_tasks.add_task)
    return MessageResponse(message=message)


@router.get("/status", response_model=RegistrationStatusResponse)
def registration_status(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    user, documents, progress = get_registration_status(db, current_user.id)
    return RegistrationStatusResponse(
        user=StatusUser.model_validate(user),
        progress=Progress(
            email_verified=progress.email_verified,
            documents_approved=progress.documents_approved,
            fully_verified=progress.fully_verified,
            completion_percentage=progress.completion_percentage,
        ),
        required_documents=progress.required_documents,
        documents=[DocumentResponse.model_validate(d) for d in documents],
        next_steps=progress.next_steps,
    )
