from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from jobtracker.core.policy import AccessPolicy
from jobtracker.core.roles import RoleService
from jobtracker.db.base import utcnow
from jobtracker.db.models import RecruiterApplication
from jobtracker.db.repositories import Repository
from jobtracker.errors import (
    ConflictError,
    NotFoundError,
    TransactionFailed,
    ValidationFailed,
)
from jobtracker.types import RECRUITER, Subject

logger = logging.getLogger(__name__)


class RecruiterApplicationService:
    """Requests to become a recruiter: ``Pending -> Approved | Rejected``."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = Repository(session)
        self.roles = RoleService(session)

    def submit(self, subject: Subject, data: dict[str, Any]) -> RecruiterApplication:
        if self.repo.get_pending_recruiter_application(subject.user_id) is not None:
            raise ConflictError("You already have a pending recruiter application")
        user = self.repo.get_user(subject.user_id)
        if user is None:
            raise NotFoundError("User not found")
        if RECRUITER in user.role_names:
            raise ConflictError("You are already a recruiter")

        application = RecruiterApplication(
            user_id=user.id,
            company_name=data["company_name"],
            company_website=data["company_website"],
            job_title=data["job_title"],
            motivation=data["motivation"],
            application_date=utcnow(),
            status="Pending",
        )
        self.session.add(application)
        self.session.commit()
        logger.info("User %s submitted recruiter application %s", user.id, application.id)
        return application

    def mine(self, subject: Subject) -> RecruiterApplication | None:
        return self.repo.get_latest_recruiter_application(subject.user_id)

    def list_all(self, subject: Subject, pending_only: bool = False) -> list[RecruiterApplication]:
        AccessPolicy(subject).require_admin()
        return self.repo.list_recruiter_applications(pending_only=pending_only)

    def get(self, subject: Subject, application_id: int) -> RecruiterApplication:
        policy = AccessPolicy(subject)
        application = self.repo.get_recruiter_application(application_id)
        if application is None and subject.is_admin:
            raise NotFoundError("Recruiter application not found")
        policy.authorize("read", application)
        return application

    def _pending_for_review(self, subject: Subject, application_id: int) -> RecruiterApplication:
        AccessPolicy(subject).require_admin()
        application = self.repo.get_recruiter_application(application_id)
        if application is None:
            raise NotFoundError("Recruiter application not found")
        if application.status != "Pending":
            raise ConflictError("This application has already been processed")
        return application

    def approve(self, subject: Subject, application_id: int) -> RecruiterApplication:
        application = self._pending_for_review(subject, application_id)
        try:
            application.status = "Approved"
            application.reviewed_by_user_id = subject.user_id
            application.review_date = utcnow()
            self.session.flush()
            self.roles.assign_role(application.user, RECRUITER)
            self.session.commit()
        except Exception as exc:
            self.session.rollback()
            logger.error("Error approving recruiter application %s", application_id, exc_info=True)
            raise TransactionFailed("An error occurred while approving the application") from exc

        logger.info("Admin %s approved recruiter application %s", subject.user_id, application_id)
        return application

    def reject(self, subject: Subject, application_id: int, reason: str) -> RecruiterApplication:
        AccessPolicy(subject).require_admin()
        if not reason or not reason.strip():
            raise ValidationFailed("Rejection reason is required")
        application = self._pending_for_review(subject, application_id)
        application.status = "Rejected"
        application.reviewed_by_user_id = subject.user_id
        application.review_date = utcnow()
        application.rejection_reason = reason.strip()
        self.session.commit()
        logger.info("Admin %s rejected recruiter application %s", subject.user_id, application_id)
        return application
