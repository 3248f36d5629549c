from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from jobtracker.core.security import TokenIssuer
from jobtracker.db.session import get_db_session
from jobtracker.errors import AuthenticationError
from jobtracker.types import Subject

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_optional_subject(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Subject | None:
    if credentials is None:
        return None
    try:
        return TokenIssuer().read_access_token(credentials.credentials)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=401,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_current_subject(subject: Subject | None = Depends(get_optional_subject)) -> Subject:
    if subject is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject
