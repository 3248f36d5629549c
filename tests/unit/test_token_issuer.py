import pytest
from jose import jwt

from jobtracker.config import Settings
from jobtracker.core.security import (
    TokenIssuer,
    check_password_strength,
    hash_password,
    verify_password,
)
from jobtracker.errors import AuthenticationError, ValidationFailed

KEY = "unit-test-signing-key-0123456789abcdef"


def _settings(**overrides) -> Settings:
    values = {"jwt_key": KEY, "jwt_issuer": "jobtracker-api", "jwt_audience": "jobtracker-client"}
    values.update(overrides)
    return Settings(**values)


def test_access_token_carries_roles_as_string_list() -> None:
    issuer = TokenIssuer(_settings())
    token = issuer.issue_access_token("user-1", "a@example.com", ["Recruiter", "User"])

    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == "user-1"
    assert claims["email"] == "a@example.com"
    assert claims["roles"] == ["Recruiter", "User"]
    assert claims["iss"] == "jobtracker-api"
    assert claims["aud"] == "jobtracker-client"
    assert claims["exp"] - claims["iat"] == 3600
    assert claims["jti"]

    subject = issuer.read_access_token(token)
    assert subject.user_id == "user-1"
    assert subject.is_recruiter
    assert not subject.is_admin


def test_token_from_other_audience_is_rejected() -> None:
    token = TokenIssuer(_settings(jwt_audience="someone-else")).issue_access_token("u", "u@example.com", [])
    with pytest.raises(AuthenticationError):
        TokenIssuer(_settings()).read_access_token(token)


def test_token_signed_with_other_key_is_rejected() -> None:
    token = TokenIssuer(_settings(jwt_key="x" * 40)).issue_access_token("u", "u@example.com", [])
    with pytest.raises(AuthenticationError):
        TokenIssuer(_settings()).read_access_token(token)


def test_expired_token_is_rejected() -> None:
    token = TokenIssuer(_settings(jwt_expiry_minutes=-1)).issue_access_token("u", "u@example.com", ["User"])
    with pytest.raises(AuthenticationError):
        TokenIssuer(_settings()).read_access_token(token)


def test_purpose_tokens_do_not_authenticate_requests() -> None:
    issuer = TokenIssuer(_settings())
    reset = issuer.issue_purpose_token("password_reset", user_id="u", security_stamp="s1", expires_minutes=30)

    with pytest.raises(AuthenticationError):
        issuer.read_access_token(reset)
    with pytest.raises(AuthenticationError):
        issuer.read_purpose_token(reset, "email_change")
    assert issuer.read_purpose_token(reset, "password_reset")["stamp"] == "s1"


def test_short_signing_key_is_refused() -> None:
    with pytest.raises(ValueError):
        Settings(jwt_key="short")


def test_password_hashing_and_strength() -> None:
    hashed = hash_password("Passw0rd!")
    assert verify_password("Passw0rd!", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("Passw0rd!", None)

    check_password_strength("Passw0rd!", _settings())
    with pytest.raises(ValidationFailed, match="digit"):
        check_password_strength("Password!", _settings())
    with pytest.raises(ValidationFailed, match="at least 8"):
        check_password_strength("Pa1", _settings())
