from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from jobtracker.db.models import JobApplication, JobPosting, RecruiterApplication, User
from jobtracker.errors import ConflictError, PermissionDenied
from jobtracker.types import ADMIN, Subject

logger = logging.getLogger(__name__)

Action = Literal["read", "update", "delete", "review", "manage"]
Resource = JobApplication | JobPosting | RecruiterApplication | User

RECRUITER_FIELDS = frozenset({"recruiter_status", "recruiter_feedback"})


@dataclass(slots=True)
class AccessPolicy:
    """Decides allow/deny for a (subject, action, resource) triple.

    * ``JobApplication``: read/update/delete by the owner or an Admin. The
      recruiter who owns the linked posting may ``read`` and ``review``;
      ``review`` covers only the recruiter status and feedback fields.
    * ``JobPosting``: update/delete/manage by the owning recruiter or an Admin.
      Reading active postings is public and not routed through here.
    * ``RecruiterApplication``: read by the applicant or an Admin; ``review``
      by an Admin only.
    * ``User``: self or Admin for read/update/delete; ``manage`` (roles) by
      Admin only.

    Anything not listed is denied.
    """

    subject: Subject

    def allows(self, action: Action, resource: Resource) -> bool:
        if isinstance(resource, JobApplication):
            return self._job_application(action, resource)
        if isinstance(resource, JobPosting):
            return self._job_posting(action, resource)
        if isinstance(resource, RecruiterApplication):
            return self._recruiter_application(action, resource)
        if isinstance(resource, User):
            return self._user(action, resource)
        return False

    def authorize(self, action: Action, resource: Resource | None) -> None:
        if resource is None or not self.allows(action, resource):
            logger.warning(
                "Denied %s on %s for user %s",
                action,
                type(resource).__name__ if resource is not None else "missing resource",
                self.subject.user_id,
            )
            raise PermissionDenied()

    def require_role(self, *roles: str) -> None:
        if self.subject.is_admin and ADMIN not in roles:
            return
        if not any(self.subject.has_role(role) for role in roles):
            logger.warning("User %s lacks any of roles %s", self.subject.user_id, roles)
            raise PermissionDenied()

    def require_admin(self) -> None:
        if not self.subject.is_admin:
            logger.warning("User %s attempted an admin-only action", self.subject.user_id)
            raise PermissionDenied()

    def _owns(self, owner_id: str | None) -> bool:
        return owner_id is not None and owner_id == self.subject.user_id

    def _job_application(self, action: Action, application: JobApplication) -> bool:
        if self.subject.is_admin:
            return action in {"read", "update", "delete", "review"}
        posting = application.job_posting
        owns_posting = posting is not None and self._owns(posting.recruiter_id) and self.subject.is_recruiter
        if action in {"update", "delete"}:
            return self._owns(application.user_id)
        if action == "read":
            return self._owns(application.user_id) or owns_posting
        if action == "review":
            return owns_posting
        return False

    def _job_posting(self, action: Action, posting: JobPosting) -> bool:
        if self.subject.is_admin:
            return True
        if action == "read":
            return posting.is_active or self._owns(posting.recruiter_id)
        return self.subject.is_recruiter and self._owns(posting.recruiter_id)

    def _recruiter_application(self, action: Action, application: RecruiterApplication) -> bool:
        if action == "review":
            return self.subject.is_admin
        if action == "read":
            return self.subject.is_admin or self._owns(application.user_id)
        return False

    def _user(self, action: Action, user: User) -> bool:
        if action == "manage":
            return self.subject.is_admin
        if action in {"read", "update", "delete"}:
            return self.subject.is_admin or self._owns(user.id)
        return False


def ensure_owner_fields_only(subject: Subject, changes: dict[str, object]) -> None:
    touched = RECRUITER_FIELDS.intersection(changes)
    if touched and not subject.is_admin:
        logger.warning("User %s tried to set %s directly", subject.user_id, sorted(touched))
        raise PermissionDenied()


def ensure_not_last_admin(admins: list[User], target: User) -> None:
    if len(admins) == 1 and admins[0].id == target.id:
        logger.warning("Refused to strip the last admin %s", target.id)
        raise ConflictError("Cannot remove the last admin")
