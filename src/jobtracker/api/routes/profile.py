from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobtracker.api.deps import get_current_subject, get_db
from jobtracker.api.schemas import (
    ChangeEmailRequest,
    ChangePasswordRequest,
    ConfirmEmailChangeRequest,
    DeleteAccountRequest,
    DeletionResponse,
    MessageResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from jobtracker.core.accounts import AccountService
from jobtracker.db.models import User
from jobtracker.types import Subject

router = APIRouter(prefix="/api/profile", tags=["profile"])


def _profile_response(user: User, application_count: int) -> ProfileResponse:
    return ProfileResponse(
        id=user.id,
        email=user.email,
        user_name=user.user_name,
        phone_number=user.phone_number,
        email_confirmed=user.email_confirmed,
        roles=user.role_names,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        application_count=application_count,
    )


@router.get("", response_model=ProfileResponse)
def get_profile(
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    user, count = AccountService(db).get_profile(subject)
    return _profile_response(user, count)


@router.put("", response_model=ProfileResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    service = AccountService(db)
    service.update_profile(subject, user_name=payload.user_name, phone_number=payload.phone_number)
    user, count = service.get_profile(subject)
    return _profile_response(user, count)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> MessageResponse:
    AccountService(db).change_password(subject, payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/change-email", response_model=MessageResponse)
def change_email(
    payload: ChangeEmailRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> MessageResponse:
    AccountService(db).request_email_change(subject, payload.new_email, payload.password)
    return MessageResponse(message="A confirmation link has been sent to your new email address")


@router.post("/confirm-email-change", response_model=MessageResponse)
def confirm_email_change(payload: ConfirmEmailChangeRequest, db: Session = Depends(get_db)) -> MessageResponse:
    AccountService(db).confirm_email_change(payload.email, payload.new_email, payload.token)
    return MessageResponse(message="Email changed successfully. Please log in again.")


@router.delete("", response_model=DeletionResponse)
def delete_account(
    payload: DeleteAccountRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> DeletionResponse:
    report = AccountService(db).delete_account(subject, payload.password)
    return DeletionResponse(
        message="Your account has been deleted",
        applications_removed=report.applications_removed,
        postings_removed=report.postings_removed,
        files_removed=report.files_removed,
    )
