from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
from sqlalchemy.orm import Session

from jobtracker.config import Settings, get_settings
from jobtracker.core.deletion import AccountDeletion, DeletionReport
from jobtracker.core.files import CvStorage
from jobtracker.core.mailer import Mailer
from jobtracker.core.policy import AccessPolicy
from jobtracker.core.roles import RoleService
from jobtracker.core.security import (
    TokenIssuer,
    check_password_strength,
    hash_password,
    verify_password,
)
from jobtracker.db.base import utcnow
from jobtracker.db.models import User, new_security_stamp
from jobtracker.db.repositories import Repository, normalize_email
from jobtracker.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDenied,
    ValidationFailed,
)
from jobtracker.types import Subject

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthResult:
    user: User
    token: str | None
    roles: list[str]


@dataclass(slots=True)
class GoogleIdentity:
    email: str
    email_verified: bool


def fetch_google_identity(id_token: str, settings: Settings) -> GoogleIdentity:
    if not settings.google_client_id:
        raise ValidationFailed("Google sign-in is not configured")
    try:
        response = requests.get(
            settings.google_tokeninfo_url,
            params={"id_token": id_token},
            timeout=settings.email_timeout_sec,
        )
    except requests.RequestException as exc:
        logger.warning("Google token verification failed: %s", exc)
        raise AuthenticationError("External authentication error") from exc

    if response.status_code != 200:
        raise AuthenticationError("External authentication error")
    claims = response.json()
    if claims.get("aud") != settings.google_client_id:
        raise AuthenticationError("External authentication error")
    email = claims.get("email")
    if not email:
        raise ValidationFailed("Email not received from external provider")
    return GoogleIdentity(email=email, email_verified=str(claims.get("email_verified", "")).lower() == "true")


class AccountService:
    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        mailer: Mailer | None = None,
        storage: CvStorage | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.roles = RoleService(session)
        self.tokens = TokenIssuer(self.settings)
        self.mailer = mailer or Mailer(self.settings)
        self.storage = storage or CvStorage(self.settings)

    def _issue(self, user: User) -> AuthResult:
        roles = user.role_names
        return AuthResult(user=user, token=self.tokens.issue_access_token(user.id, user.email, roles), roles=roles)

    def _current_user(self, subject: Subject) -> User:
        user = self.repo.get_user(subject.user_id)
        if user is None:
            raise NotFoundError("User not found")
        AccessPolicy(subject).authorize("update", user)
        return user

    def _email_token(self, user: User) -> str:
        return self.tokens.issue_purpose_token(
            "email_verify",
            user_id=user.id,
            security_stamp=user.security_stamp,
            expires_minutes=self.settings.email_token_expiry_minutes,
            extra={"email": user.email},
        )

    def _check_stamp(self, payload: dict, user: User) -> None:
        if payload.get("sub") != user.id or payload.get("stamp") != user.security_stamp:
            raise ValidationFailed("Invalid or expired token")

    # registration and login

    def register(self, email: str, password: str, user_name: str | None = None) -> AuthResult:
        email = normalize_email(email)
        user_name = (user_name or email).strip()
        if self.repo.get_user_by_email(email) is not None:
            raise ConflictError(f"Email '{email}' is already taken")
        if self.repo.get_user_by_name(user_name) is not None:
            raise ConflictError(f"Username '{user_name}' is already taken")
        check_password_strength(password, self.settings)

        user = self.repo.add_user(
            User(
                email=email,
                user_name=user_name,
                password_hash=hash_password(password),
                email_confirmed=not self.settings.require_confirmed_email,
            )
        )
        self.roles.ensure_default_role(user)
        self.session.commit()
        logger.info("Registered user %s", email)

        if self.settings.require_confirmed_email:
            self.mailer.send_verification_email(user.email, self._email_token(user))
            return AuthResult(user=user, token=None, roles=user.role_names)
        return self._issue(user)

    def login(self, email: str, password: str) -> AuthResult:
        user = self.repo.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        if self.settings.require_confirmed_email and not user.email_confirmed:
            raise PermissionDenied("Please confirm your email address before logging in")

        self.roles.ensure_default_role(user)
        user.last_login_at = utcnow()
        self.session.commit()
        return self._issue(user)

    def google_login(self, id_token: str) -> AuthResult:
        identity = fetch_google_identity(id_token, self.settings)
        user = self.repo.get_user_by_email(identity.email)
        is_new = user is None
        if user is None:
            email = normalize_email(identity.email)
            user = self.repo.add_user(
                User(email=email, user_name=email, password_hash=None, email_confirmed=identity.email_verified)
            )
        elif identity.email_verified and not user.email_confirmed:
            user.email_confirmed = True

        self.roles.ensure_default_role(user)
        user.last_login_at = utcnow()
        self.session.commit()
        logger.info("%s Google user %s signed in", "New" if is_new else "Existing", user.email)
        return self._issue(user)

    # email verification

    def verify_email(self, email: str, token: str) -> User:
        user = self.repo.get_user_by_email(email)
        if user is None:
            logger.warning("Verification attempt for unknown email %s", email)
            raise ValidationFailed("Invalid verification link")
        try:
            payload = self.tokens.read_purpose_token(token, "email_verify")
        except AuthenticationError as exc:
            raise ValidationFailed("Invalid verification link") from exc
        if payload.get("email") != user.email:
            raise ValidationFailed("Invalid verification link")
        self._check_stamp(payload, user)

        user.email_confirmed = True
        self.session.commit()
        logger.info("Email verification successful for %s", user.email)
        return user

    def resend_verification(self, email: str) -> None:
        user = self.repo.get_user_by_email(email)
        if user is None or user.email_confirmed:
            return
        self.mailer.send_verification_email(user.email, self._email_token(user))

    # password recovery

    def forgot_password(self, email: str) -> None:
        user = self.repo.get_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return
        token = self.tokens.issue_purpose_token(
            "password_reset",
            user_id=user.id,
            security_stamp=user.security_stamp,
            expires_minutes=self.settings.password_reset_expiry_minutes,
        )
        self.mailer.send_password_reset_email(user.email, token)

    def reset_password(self, email: str, token: str, new_password: str) -> None:
        user = self.repo.get_user_by_email(email)
        if user is None:
            raise ValidationFailed("Invalid or expired token")
        try:
            payload = self.tokens.read_purpose_token(token, "password_reset")
        except AuthenticationError as exc:
            raise ValidationFailed("Invalid or expired token") from exc
        self._check_stamp(payload, user)
        check_password_strength(new_password, self.settings)

        user.password_hash = hash_password(new_password)
        user.security_stamp = new_security_stamp()
        self.session.commit()
        logger.info("Password reset for %s", user.email)

    # profile

    def get_profile(self, subject: Subject) -> tuple[User, int]:
        user = self._current_user(subject)
        return user, len(self.repo.list_job_applications(user_id=user.id))

    def update_profile(self, subject: Subject, *, user_name: str | None, phone_number: str | None) -> User:
        user = self._current_user(subject)
        if user_name and user_name != user.user_name:
            existing = self.repo.get_user_by_name(user_name)
            if existing is not None and existing.id != user.id:
                raise ConflictError("Username is already taken")
            user.user_name = user_name
        if phone_number and phone_number != user.phone_number:
            user.phone_number = phone_number
            user.phone_number_confirmed = False
        self.session.commit()
        return user

    def change_password(self, subject: Subject, current_password: str, new_password: str) -> None:
        user = self._current_user(subject)
        if not verify_password(current_password, user.password_hash):
            raise ValidationFailed("Incorrect password")
        check_password_strength(new_password, self.settings)
        user.password_hash = hash_password(new_password)
        user.security_stamp = new_security_stamp()
        self.session.commit()
        logger.info("Password changed for %s", user.email)

    def request_email_change(self, subject: Subject, new_email: str, password: str) -> None:
        user = self._current_user(subject)
        new_email = normalize_email(new_email)
        existing = self.repo.get_user_by_email(new_email)
        if existing is not None and existing.id != user.id:
            raise ConflictError("Email is already in use")
        if not verify_password(password, user.password_hash):
            raise ValidationFailed("Incorrect password")

        token = self.tokens.issue_purpose_token(
            "email_change",
            user_id=user.id,
            security_stamp=user.security_stamp,
            expires_minutes=self.settings.email_token_expiry_minutes,
            extra={"new_email": new_email},
        )
        self.mailer.send_email_change_confirmation(user.email, new_email, token)

    def confirm_email_change(self, email: str, new_email: str, token: str) -> User:
        user = self.repo.get_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        new_email = normalize_email(new_email)
        try:
            payload = self.tokens.read_purpose_token(token, "email_change")
        except AuthenticationError as exc:
            raise ValidationFailed("Failed to confirm email change") from exc
        if payload.get("new_email") != new_email:
            raise ValidationFailed("Failed to confirm email change")
        self._check_stamp(payload, user)
        if self.repo.get_user_by_email(new_email) is not None:
            raise ConflictError("Email is already in use")

        if user.user_name == user.email:
            user.user_name = new_email
        user.email = new_email
        user.email_confirmed = True
        user.security_stamp = new_security_stamp()
        self.session.commit()
        logger.info("Email changed for user %s", user.id)
        return user

    def delete_account(self, subject: Subject, password: str) -> DeletionReport:
        user = self._current_user(subject)
        if not verify_password(password, user.password_hash):
            raise ValidationFailed("Incorrect password")
        email = user.email
        report = AccountDeletion(self.session, self.storage).delete_user(user)
        self.mailer.send_account_deletion_confirmation(email)
        return report
