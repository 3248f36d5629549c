from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from jobtracker.core.policy import ensure_not_last_admin
from jobtracker.db.models import Role, User
from jobtracker.db.repositories import Repository
from jobtracker.errors import ConflictError, NotFoundError, ValidationFailed
from jobtracker.types import ADMIN, DEFAULT_ROLES, USER

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = Repository(session)

    def ensure_roles_created(self) -> list[str]:
        created: list[str] = []
        for name in DEFAULT_ROLES:
            if self.repo.get_role(name) is None:
                logger.info("Creating role %s", name)
                self.repo.add_role(name)
                created.append(name)
        return created

    def _require_role(self, name: str) -> Role:
        role = self.repo.get_role(name)
        if role is None:
            raise NotFoundError(f"Role {name} does not exist")
        return role

    def assign_role(self, user: User, name: str) -> bool:
        role = self._require_role(name)
        if role in user.roles:
            logger.info("User %s already has role %s", user.email, name)
            return False
        logger.info("Adding user %s to role %s", user.email, name)
        user.roles.append(role)
        self.session.flush()
        return True

    def remove_role(self, user: User, name: str) -> None:
        role = self._require_role(name)
        if role not in user.roles:
            raise ConflictError(f"User is not in role {name}")
        if name == ADMIN:
            ensure_not_last_admin(self.repo.users_in_role(ADMIN), user)
        logger.info("Removing user %s from role %s", user.email, name)
        user.roles.remove(role)
        self.session.flush()

    def ensure_default_role(self, user: User) -> bool:
        """Give a role-less user the ``User`` role. Returns True if it changed anything."""
        if user.roles:
            return False
        if self.repo.get_role(USER) is None:
            self.repo.add_role(USER)
        logger.info("User %s has no roles, assigning %s", user.email, USER)
        return self.assign_role(user, USER)

    def create_role(self, name: str) -> bool:
        name = name.strip()
        if not name:
            raise ValidationFailed("Role name cannot be empty")
        if self.repo.get_role(name) is not None:
            logger.info("Role %s already exists", name)
            return False
        logger.info("Creating new role %s", name)
        self.repo.add_role(name)
        return True

    def list_roles(self) -> list[str]:
        return [role.name for role in self.repo.list_roles()]

    def migrate_users_without_roles(self) -> int:
        migrated = 0
        for user in self.repo.list_users():
            if self.ensure_default_role(user):
                migrated += 1
        logger.info("Role migration complete, %s users were assigned the %s role", migrated, USER)
        return migrated
