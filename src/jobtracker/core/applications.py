from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO

from sqlalchemy.orm import Session

from jobtracker.config import Settings, get_settings
from jobtracker.core.files import CvStorage
from jobtracker.core.mailer import Mailer
from jobtracker.core.policy import AccessPolicy, ensure_owner_fields_only
from jobtracker.db.base import as_naive_utc, utcnow
from jobtracker.db.models import JobApplication, JobPosting, User
from jobtracker.db.repositories import Repository
from jobtracker.errors import ConflictError, NotFoundError, TransactionFailed
from jobtracker.types import Subject

logger = logging.getLogger(__name__)

OWNER_FIELDS = ("company_name", "position", "status", "deadline", "notes", "cover_letter")
REQUIRED_FIELDS = frozenset({"company_name", "position", "status", "deadline"})


@dataclass(slots=True)
class CvUpload:
    stream: BinaryIO
    filename: str
    size: int | None = None


class JobApplicationService:
    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        storage: CvStorage | None = None,
        mailer: Mailer | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.storage = storage or CvStorage(self.settings)
        self.mailer = mailer or Mailer(self.settings)

    def list_for(self, subject: Subject) -> list[JobApplication]:
        if subject.is_admin:
            return self.repo.list_job_applications()
        return self.repo.list_job_applications(user_id=subject.user_id)

    def _load(self, subject: Subject, application_id: int) -> JobApplication | None:
        application = self.repo.get_job_application(application_id)
        if application is None and subject.is_admin:
            raise NotFoundError("Job application not found")
        return application

    def _owner(self, subject: Subject) -> User:
        user = self.repo.get_user(subject.user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get(self, subject: Subject, application_id: int) -> JobApplication:
        application = self._load(subject, application_id)
        AccessPolicy(subject).authorize("read", application)
        return application

    def create_manual(self, subject: Subject, data: dict[str, Any]) -> JobApplication:
        ensure_owner_fields_only(subject, data)
        owner = self._owner(subject)
        application = JobApplication(
            user_id=owner.id,
            company_name=data["company_name"],
            position=data["position"],
            status=data.get("status") or "ApplicationNeeded",
            deadline=as_naive_utc(data["deadline"]),
            notes=data.get("notes") or "",
            cover_letter=data.get("cover_letter"),
        )
        self.session.add(application)
        self.session.commit()
        logger.info("User %s created application %s", subject.user_id, application.id)
        return application

    def update(self, subject: Subject, application_id: int, changes: dict[str, Any]) -> JobApplication:
        application = self._load(subject, application_id)
        AccessPolicy(subject).authorize("update", application)
        ensure_owner_fields_only(subject, changes)

        fields = OWNER_FIELDS + (("recruiter_status", "recruiter_feedback") if subject.is_admin else ())
        for name in fields:
            if name not in changes:
                continue
            value = changes[name]
            if value is None and name in REQUIRED_FIELDS:
                continue
            if name == "deadline" and isinstance(value, datetime):
                value = as_naive_utc(value)
            if name == "notes" and value is None:
                value = ""
            setattr(application, name, value)
        self.session.commit()
        return application

    def delete(self, subject: Subject, application_id: int) -> None:
        application = self._load(subject, application_id)
        AccessPolicy(subject).authorize("delete", application)
        cv_path = application.cv_file_path
        self.repo.delete(application)
        self.session.commit()
        logger.info("User %s deleted application %s", subject.user_id, application_id)
        if cv_path:
            self.storage.delete(cv_path)

    def apply_to_posting(
        self,
        subject: Subject,
        posting_id: int,
        *,
        notes: str = "",
        cover_letter: str | None = None,
        cv: CvUpload | None = None,
    ) -> JobApplication:
        if cv is not None:
            self.storage.validate(cv.filename, cv.size)

        owner = self._owner(subject)
        posting = self.repo.get_job_posting(posting_id)
        if posting is None or not posting.is_active:
            raise NotFoundError("Job posting not found or inactive")
        if posting.application_deadline < utcnow():
            raise ConflictError("The application deadline for this job has passed")
        if self.repo.find_application_to_posting(owner.id, posting_id) is not None:
            raise ConflictError("You have already applied to this job")

        cv_path = None
        if cv is not None:
            cv_path = self.storage.save(cv.stream, cv.filename, owner.id, cv.size)

        now = utcnow()
        application = JobApplication(
            user_id=owner.id,
            job_posting_id=posting.id,
            company_name=posting.company_name,
            position=posting.title,
            status="Applied",
            deadline=posting.application_deadline,
            notes=notes or "",
            cover_letter=cover_letter,
            cv_file_path=cv_path,
            recruiter_status="Pending",
            applied_at=now,
        )
        try:
            self.session.add(application)
            self.session.commit()
        except Exception as exc:
            self.session.rollback()
            logger.error("Failed to store application to posting %s", posting_id, exc_info=True)
            self.storage.delete(cv_path)
            raise TransactionFailed("Failed to submit the application") from exc

        logger.info("User %s applied to posting %s", subject.user_id, posting_id)
        return application

    def review(
        self,
        subject: Subject,
        application_id: int,
        recruiter_status: str,
        feedback: str | None = None,
    ) -> JobApplication:
        application = self._load(subject, application_id)
        AccessPolicy(subject).authorize("review", application)

        application.recruiter_status = recruiter_status
        if feedback is not None:
            application.recruiter_feedback = feedback
        self.session.commit()
        logger.info(
            "User %s set recruiter status of application %s to %s",
            subject.user_id,
            application_id,
            recruiter_status,
        )

        self.mailer.send_application_status_update(
            application.user.email,
            application.company_name,
            application.position,
            recruiter_status,
            application.recruiter_feedback,
        )
        return application

    def applicants_for_posting(self, subject: Subject, posting_id: int) -> tuple[JobPosting, list[JobApplication]]:
        posting = self.repo.get_job_posting(posting_id)
        if posting is None:
            raise NotFoundError("Job posting not found")
        AccessPolicy(subject).authorize("manage", posting)
        return posting, self.repo.list_applications_for_posting(posting_id)
