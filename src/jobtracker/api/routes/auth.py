from __future__ import annotations

from urllib.parse import urlencode

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from jobtracker.api.deps import get_db
from jobtracker.api.schemas import (
    AuthResponse,
    EmailRequest,
    GoogleLoginRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from jobtracker.config import get_settings
from jobtracker.core.accounts import AccountService, AuthResult
from jobtracker.errors import JobTrackerError

router = APIRouter(prefix="/api/auth", tags=["auth"])
callback_router = APIRouter(tags=["auth"])

RESET_SENT = "If your email is registered, you will receive a password reset link"
VERIFICATION_SENT = "If your email is registered and not verified, a new verification link has been sent"


def _auth_response(result: AuthResult, message: str = "") -> AuthResponse:
    return AuthResponse(
        token=result.token,
        user_id=result.user.id,
        email=result.user.email,
        user_name=result.user.user_name,
        roles=result.roles,
        email_confirmed=result.user.email_confirmed,
        message=message,
    )


@router.post("/register", response_model=AuthResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    result = AccountService(db).register(payload.email, payload.password, payload.user_name)
    message = (
        "Registration successful. Please check your email to verify your account."
        if result.token is None
        else "Registration successful"
    )
    return _auth_response(result, message)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    return _auth_response(AccountService(db).login(payload.email, payload.password))


@router.post("/google", response_model=AuthResponse)
def google_login(payload: GoogleLoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    return _auth_response(AccountService(db).google_login(payload.id_token))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: EmailRequest, db: Session = Depends(get_db)) -> MessageResponse:
    AccountService(db).forgot_password(payload.email)
    return MessageResponse(message=RESET_SENT)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)) -> MessageResponse:
    AccountService(db).reset_password(payload.email, payload.token, payload.new_password)
    return MessageResponse(message="Password has been reset successfully")


@router.post("/verify-email", response_model=MessageResponse)
def verify_email(payload: VerifyEmailRequest, db: Session = Depends(get_db)) -> MessageResponse:
    AccountService(db).verify_email(payload.email, payload.token)
    return MessageResponse(message="Email verified successfully. You can now log in.")


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(payload: EmailRequest, db: Session = Depends(get_db)) -> MessageResponse:
    AccountService(db).resend_verification(payload.email)
    return MessageResponse(message=VERIFICATION_SENT)


@callback_router.get("/verify-email")
def verify_email_link(token: str, email: str, db: Session = Depends(get_db)) -> RedirectResponse:
    settings = get_settings()
    try:
        AccountService(db).verify_email(email, token)
        params = {"verified": "true"}
    except JobTrackerError:
        params = {"error": "true"}
    target = f"{settings.frontend_link(settings.verify_email_path)}?{urlencode(params)}"
    return RedirectResponse(target, status_code=302)
