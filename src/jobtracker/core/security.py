from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from jobtracker.config import Settings, get_settings
from jobtracker.errors import AuthenticationError, ValidationFailed
from jobtracker.types import Subject, TokenPurpose

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def check_password_strength(password: str, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    problems: list[str] = []
    if len(password) < settings.min_password_length:
        problems.append(f"Password must be at least {settings.min_password_length} characters")
    if not any(ch.isdigit() for ch in password):
        problems.append("Password must contain a digit")
    if not any(ch.isupper() for ch in password):
        problems.append("Password must contain an uppercase letter")
    if not any(ch.islower() for ch in password):
        problems.append("Password must contain a lowercase letter")
    if problems:
        raise ValidationFailed("; ".join(problems))


class TokenIssuer:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def _encode(self, payload: dict[str, Any], expires_delta: timedelta) -> str:
        now = datetime.now(UTC)
        claims = {
            **payload,
            "iss": self.settings.jwt_issuer,
            "aud": self.settings.jwt_audience,
            "iat": int(now.timestamp()),
            "exp": int((now + expires_delta).timestamp()),
        }
        return jwt.encode(claims, self.settings.jwt_key, algorithm=self.settings.jwt_algorithm)

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.settings.jwt_key,
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
                issuer=self.settings.jwt_issuer,
            )
        except JWTError as exc:
            raise AuthenticationError("Invalid or expired token") from exc

    def issue_access_token(self, user_id: str, email: str, roles: list[str]) -> str:
        return self._encode(
            {
                "sub": user_id,
                "email": email,
                "jti": str(uuid.uuid4()),
                "purpose": "access",
                "roles": [role for role in roles if role],
            },
            timedelta(minutes=self.settings.jwt_expiry_minutes),
        )

    def read_access_token(self, token: str) -> Subject:
        payload = self._decode(token)
        if payload.get("purpose") != "access":
            raise AuthenticationError("Access token required")
        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token subject")
        roles = payload.get("roles") or []
        if not isinstance(roles, list):
            raise AuthenticationError("Invalid role claim")
        return Subject(user_id=user_id, email=payload.get("email", ""), roles=frozenset(roles))

    def issue_purpose_token(
        self,
        purpose: TokenPurpose,
        *,
        user_id: str,
        security_stamp: str,
        expires_minutes: int,
        extra: dict[str, Any] | None = None,
    ) -> str:
        payload: dict[str, Any] = {"sub": user_id, "purpose": purpose, "stamp": security_stamp}
        if extra:
            payload.update(extra)
        return self._encode(payload, timedelta(minutes=expires_minutes))

    def read_purpose_token(self, token: str, purpose: TokenPurpose) -> dict[str, Any]:
        payload = self._decode(token)
        if payload.get("purpose") != purpose:
            raise AuthenticationError("Invalid or expired token")
        return payload
