from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy.orm import Session

from jobtracker.core.deletion import AccountDeletion, DeletionReport
from jobtracker.core.files import CvStorage
from jobtracker.core.policy import AccessPolicy
from jobtracker.core.roles import RoleService
from jobtracker.core.security import check_password_strength, hash_password
from jobtracker.db.base import utcnow
from jobtracker.db.models import JobApplication, User
from jobtracker.db.repositories import Repository, normalize_email
from jobtracker.errors import ConflictError, NotFoundError
from jobtracker.types import USER, Subject

logger = logging.getLogger(__name__)

UPCOMING_DEADLINE_DAYS = 14


@dataclass(slots=True)
class AdminStats:
    total_users: int
    total_applications: int
    applications_by_status: dict[str, int]
    applications_per_user: list[dict[str, object]]
    upcoming_deadlines: list[JobApplication] = field(default_factory=list)


class AdminService:
    def __init__(self, session: Session, subject: Subject, storage: CvStorage | None = None):
        self.policy = AccessPolicy(subject)
        self.policy.require_admin()
        self.session = session
        self.subject = subject
        self.repo = Repository(session)
        self.roles = RoleService(session)
        self.storage = storage or CvStorage()

    def _user(self, user_id: str) -> User:
        user = self.repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _user_by_email(self, email: str) -> User:
        user = self.repo.get_user_by_email(email)
        if user is None:
            raise NotFoundError(f"User with email {email} not found")
        return user

    def list_users(self) -> list[tuple[User, int]]:
        counts = self.repo.count_applications_by_user()
        return [(user, counts.get(user.id, 0)) for user in self.repo.list_users()]

    def get_user(self, user_id: str) -> tuple[User, list[JobApplication]]:
        user = self._user(user_id)
        return user, self.repo.list_job_applications(user_id=user.id)

    def create_user(self, email: str, password: str, roles: list[str] | None = None) -> User:
        """Create a confirmed account directly, defaulting to the ``User`` role."""
        email = normalize_email(email)
        if self.repo.get_user_by_email(email) is not None or self.repo.get_user_by_name(email) is not None:
            raise ConflictError(f"Email '{email}' is already taken")
        check_password_strength(password)
        names = list(dict.fromkeys(roles or [USER]))
        missing = [name for name in names if self.repo.get_role(name) is None]
        if missing:
            raise NotFoundError(f"Role {missing[0]} does not exist")

        user = self.repo.add_user(
            User(
                email=email,
                user_name=email,
                password_hash=hash_password(password),
                email_confirmed=True,
            )
        )
        for name in names:
            self.roles.assign_role(user, name)
        self.session.commit()
        logger.info("Admin %s created user %s with roles %s", self.subject.user_id, email, names)
        return user

    def delete_user(self, user_id: str) -> DeletionReport:
        user = self._user(user_id)
        self.policy.authorize("delete", user)
        report = AccountDeletion(self.session, self.storage).delete_user(user)
        logger.info("Admin %s deleted user %s", self.subject.user_id, report.email)
        return report

    def assign_role(self, email: str, role: str) -> bool:
        user = self._user_by_email(email)
        self.policy.authorize("manage", user)
        changed = self.roles.assign_role(user, role)
        self.session.commit()
        logger.info("Admin %s assigned role %s to %s", self.subject.user_id, role, user.email)
        return changed

    def remove_role(self, email: str, role: str) -> None:
        user = self._user_by_email(email)
        self.policy.authorize("manage", user)
        self.roles.remove_role(user, role)
        self.session.commit()
        logger.info("Admin %s removed role %s from %s", self.subject.user_id, role, user.email)

    def list_roles(self) -> list[str]:
        return self.roles.list_roles()

    def create_role(self, name: str) -> bool:
        created = self.roles.create_role(name)
        self.session.commit()
        return created

    def list_jobs(self) -> list[JobApplication]:
        return self.repo.list_job_applications()

    def stats(self) -> AdminStats:
        users = self.repo.list_users()
        per_user = self.repo.count_applications_by_user()
        by_status = self.repo.count_applications_by_status()
        now = utcnow()
        return AdminStats(
            total_users=len(users),
            total_applications=sum(per_user.values()),
            applications_by_status=by_status,
            applications_per_user=[
                {"user_id": user.id, "email": user.email, "count": per_user[user.id]}
                for user in users
                if per_user.get(user.id)
            ],
            upcoming_deadlines=self.repo.applications_with_deadline_between(
                now, now + timedelta(days=UPCOMING_DEADLINE_DAYS)
            ),
        )
