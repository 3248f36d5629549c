from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from jobtracker.core.files import CvStorage
from jobtracker.core.policy import ensure_not_last_admin
from jobtracker.db.models import User
from jobtracker.db.repositories import Repository
from jobtracker.errors import TransactionFailed
from jobtracker.types import ADMIN

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeletionReport:
    user_id: str
    email: str
    applications_removed: int = 0
    postings_removed: int = 0
    files_removed: int = 0
    cv_paths: list[str] = field(default_factory=list)


class AccountDeletion:
    """Removes a user together with everything they own, in one transaction.

    Order: the user's applications, then any postings they own (which takes
    other users' applications on those postings with them), then the identity
    row. Nothing is committed until the identity delete has flushed. CV files
    are removed from disk only after the commit succeeds, so a rollback never
    leaves rows pointing at files that are gone.
    """

    def __init__(self, session: Session, storage: CvStorage | None = None):
        self.session = session
        self.repo = Repository(session)
        self.storage = storage or CvStorage()

    def delete_user(self, user: User) -> DeletionReport:
        if ADMIN in user.role_names:
            ensure_not_last_admin(self.repo.users_in_role(ADMIN), user)

        report = DeletionReport(user_id=user.id, email=user.email)
        cv_paths: dict[str, None] = {}
        try:
            applications = self.repo.list_job_applications(user_id=user.id)
            for application in applications:
                if application.cv_file_path:
                    cv_paths[application.cv_file_path] = None
                self.session.delete(application)
            report.applications_removed = len(applications)

            postings = self.repo.list_job_postings(include_inactive=True, recruiter_id=user.id)
            for posting in postings:
                for application in posting.applications:
                    if application.cv_file_path:
                        cv_paths[application.cv_file_path] = None
                self.session.delete(posting)
            report.postings_removed = len(postings)
            self.session.flush()

            self._delete_identity(user)
            self.session.commit()
        except Exception as exc:
            self.session.rollback()
            logger.error("Error deleting user %s and related data", report.user_id, exc_info=True)
            raise TransactionFailed("Failed to delete the account") from exc

        report.cv_paths = list(cv_paths)
        report.files_removed = self.storage.delete_many(report.cv_paths)
        logger.info(
            "Deleted user %s with %s applications and %s postings",
            report.email,
            report.applications_removed,
            report.postings_removed,
        )
        return report

    def _delete_identity(self, user: User) -> None:
        self.session.delete(user)
        self.session.flush()
