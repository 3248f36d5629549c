from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from jobtracker.config import Settings, get_settings
from jobtracker.core.roles import RoleService
from jobtracker.core.security import hash_password
from jobtracker.db.models import User
from jobtracker.db.repositories import Repository, normalize_email
from jobtracker.types import ADMIN, USER

logger = logging.getLogger(__name__)


def seed_roles(session: Session) -> list[str]:
    created = RoleService(session).ensure_roles_created()
    session.commit()
    return created


def create_admin(session: Session, email: str, password: str) -> User:
    repo = Repository(session)
    roles = RoleService(session)
    roles.ensure_roles_created()

    user = repo.get_user_by_email(email)
    if user is None:
        email = normalize_email(email)
        user = repo.add_user(
            User(
                email=email,
                user_name=email,
                password_hash=hash_password(password),
                email_confirmed=True,
            )
        )
        logger.info("Created admin user %s", email)
    roles.assign_role(user, ADMIN)
    roles.assign_role(user, USER)
    session.commit()
    return user


def seed_bootstrap_admin(session: Session, settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    if not settings.admin_email or not settings.admin_password:
        return False
    if Repository(session).users_in_role(ADMIN):
        return False
    create_admin(session, settings.admin_email, settings.admin_password)
    return True
