from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from jobtracker.db.models import JobApplication, JobPosting, RecruiterApplication, Role, User


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Repository:
    """Query helpers over one session.

    Methods stage changes (add/delete/flush) but never commit; the calling
    service owns the transaction boundary.
    """

    def __init__(self, session: Session):
        self.session = session

    # users

    def get_user(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == normalize_email(email)))

    def get_user_by_name(self, user_name: str) -> User | None:
        return self.session.scalar(select(User).where(User.user_name == user_name))

    def list_users(self) -> list[User]:
        return list(self.session.scalars(select(User).order_by(User.created_at.asc())).all())

    def add_user(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    # roles

    def get_role(self, name: str) -> Role | None:
        return self.session.scalar(select(Role).where(Role.name == name))

    def list_roles(self) -> list[Role]:
        return list(self.session.scalars(select(Role).order_by(Role.name.asc())).all())

    def add_role(self, name: str) -> Role:
        role = Role(name=name)
        self.session.add(role)
        self.session.flush()
        return role

    def users_in_role(self, name: str) -> list[User]:
        statement = select(User).join(User.roles).where(Role.name == name).order_by(User.id.asc())
        return list(self.session.scalars(statement).all())

    # job postings

    def get_job_posting(self, posting_id: int) -> JobPosting | None:
        return self.session.get(JobPosting, posting_id)

    def list_job_postings(
        self,
        *,
        include_inactive: bool = False,
        recruiter_id: str | None = None,
    ) -> list[JobPosting]:
        statement = select(JobPosting)
        if recruiter_id is not None:
            statement = statement.where(JobPosting.recruiter_id == recruiter_id)
        if not include_inactive:
            statement = statement.where(JobPosting.is_active.is_(True))
        statement = statement.order_by(JobPosting.posted_date.desc(), JobPosting.id.desc())
        return list(self.session.scalars(statement).all())

    # job applications

    def get_job_application(self, application_id: int) -> JobApplication | None:
        return self.session.get(JobApplication, application_id)

    def list_job_applications(self, user_id: str | None = None) -> list[JobApplication]:
        statement = select(JobApplication)
        if user_id is not None:
            statement = statement.where(JobApplication.user_id == user_id)
        statement = statement.order_by(JobApplication.deadline.asc(), JobApplication.id.asc())
        return list(self.session.scalars(statement).all())

    def list_applications_for_posting(self, posting_id: int) -> list[JobApplication]:
        statement = (
            select(JobApplication)
            .where(JobApplication.job_posting_id == posting_id)
            .order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def find_application_to_posting(self, user_id: str, posting_id: int) -> JobApplication | None:
        return self.session.scalar(
            select(JobApplication).where(
                and_(
                    JobApplication.user_id == user_id,
                    JobApplication.job_posting_id == posting_id,
                )
            )
        )

    def count_applications_by_user(self) -> dict[str, int]:
        statement = select(JobApplication.user_id, func.count()).group_by(JobApplication.user_id)
        return {user_id: count for user_id, count in self.session.execute(statement).all()}

    def count_applications_by_status(self) -> dict[str, int]:
        statement = select(JobApplication.status, func.count()).group_by(JobApplication.status)
        return {status: count for status, count in self.session.execute(statement).all()}

    def applications_with_deadline_between(self, start: datetime, end: datetime) -> list[JobApplication]:
        statement = (
            select(JobApplication)
            .where(and_(JobApplication.deadline >= start, JobApplication.deadline <= end))
            .order_by(JobApplication.deadline.asc())
        )
        return list(self.session.scalars(statement).all())

    # recruiter applications

    def get_recruiter_application(self, application_id: int) -> RecruiterApplication | None:
        return self.session.get(RecruiterApplication, application_id)

    def get_pending_recruiter_application(self, user_id: str) -> RecruiterApplication | None:
        return self.session.scalar(
            select(RecruiterApplication).where(
                and_(
                    RecruiterApplication.user_id == user_id,
                    RecruiterApplication.status == "Pending",
                )
            )
        )

    def get_latest_recruiter_application(self, user_id: str) -> RecruiterApplication | None:
        statement = (
            select(RecruiterApplication)
            .where(RecruiterApplication.user_id == user_id)
            .order_by(RecruiterApplication.application_date.desc(), RecruiterApplication.id.desc())
        )
        return self.session.scalars(statement).first()

    def list_recruiter_applications(self, *, pending_only: bool = False) -> list[RecruiterApplication]:
        statement = select(RecruiterApplication)
        if pending_only:
            statement = statement.where(RecruiterApplication.status == "Pending")
        statement = statement.order_by(
            RecruiterApplication.application_date.desc(), RecruiterApplication.id.desc()
        )
        return list(self.session.scalars(statement).all())

    def delete(self, obj: object) -> None:
        self.session.delete(obj)
