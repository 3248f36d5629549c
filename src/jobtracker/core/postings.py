from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from jobtracker.core.files import CvStorage
from jobtracker.core.policy import AccessPolicy
from jobtracker.db.base import as_naive_utc, utcnow
from jobtracker.db.models import JobPosting
from jobtracker.db.repositories import Repository
from jobtracker.errors import NotFoundError
from jobtracker.types import RECRUITER, Subject

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "company_name",
    "description",
    "location",
    "is_remote",
    "salary_range",
    "requirements",
    "application_deadline",
    "is_active",
)
NULLABLE_FIELDS = frozenset({"location", "salary_range"})


class JobPostingService:
    def __init__(self, session: Session, storage: CvStorage | None = None):
        self.session = session
        self.repo = Repository(session)
        self.storage = storage or CvStorage()

    def list_public(self, subject: Subject | None, include_inactive: bool = False) -> list[JobPosting]:
        show_all = include_inactive and subject is not None and subject.is_admin
        return self.repo.list_job_postings(include_inactive=show_all)

    def list_mine(self, subject: Subject) -> list[JobPosting]:
        AccessPolicy(subject).require_role(RECRUITER)
        return self.repo.list_job_postings(include_inactive=True, recruiter_id=subject.user_id)

    def get(self, subject: Subject | None, posting_id: int) -> JobPosting:
        posting = self.repo.get_job_posting(posting_id)
        if posting is None:
            raise NotFoundError("Job posting not found")
        if not posting.is_active and (subject is None or not AccessPolicy(subject).allows("read", posting)):
            raise NotFoundError("Job posting not found")
        return posting

    def _owned(self, subject: Subject, posting_id: int) -> JobPosting:
        posting = self.repo.get_job_posting(posting_id)
        if posting is None:
            raise NotFoundError("Job posting not found")
        AccessPolicy(subject).authorize("update", posting)
        return posting

    def create(self, subject: Subject, data: dict[str, Any]) -> JobPosting:
        AccessPolicy(subject).require_role(RECRUITER)
        recruiter = self.repo.get_user(subject.user_id)
        if recruiter is None:
            raise NotFoundError("User not found")
        posting = JobPosting(
            recruiter_id=recruiter.id,
            title=data["title"],
            company_name=data["company_name"],
            description=data["description"],
            location=data.get("location"),
            is_remote=bool(data.get("is_remote", False)),
            salary_range=data.get("salary_range"),
            requirements=data["requirements"],
            posted_date=utcnow(),
            application_deadline=as_naive_utc(data["application_deadline"]),
            is_active=True,
        )
        self.session.add(posting)
        self.session.commit()
        logger.info("Recruiter %s created posting %s", subject.user_id, posting.id)
        return posting

    def update(self, subject: Subject, posting_id: int, changes: dict[str, Any]) -> JobPosting:
        posting = self._owned(subject, posting_id)
        for name in EDITABLE_FIELDS:
            if name not in changes:
                continue
            value = changes[name]
            if value is None and name not in NULLABLE_FIELDS:
                continue
            if isinstance(value, datetime):
                value = as_naive_utc(value)
            setattr(posting, name, value)
        self.session.commit()
        return posting

    def delete(self, subject: Subject, posting_id: int) -> int:
        posting = self._owned(subject, posting_id)
        cv_paths = list(dict.fromkeys(app.cv_file_path for app in posting.applications if app.cv_file_path))
        removed = len(posting.applications)
        self.repo.delete(posting)
        self.session.commit()
        logger.info("User %s deleted posting %s with %s applications", subject.user_id, posting_id, removed)
        self.storage.delete_many(cv_paths)
        return removed

    def toggle(self, subject: Subject, posting_id: int) -> JobPosting:
        posting = self._owned(subject, posting_id)
        posting.is_active = not posting.is_active
        self.session.commit()
        logger.info("Posting %s is now %s", posting_id, "active" if posting.is_active else "inactive")
        return posting
