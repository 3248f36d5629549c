from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ADMIN = "Admin"
USER = "User"
RECRUITER = "Recruiter"
DEFAULT_ROLES: tuple[str, ...] = (ADMIN, USER, RECRUITER)

JobStatus = Literal[
    "ApplicationNeeded",
    "Applied",
    "ExamCenter",
    "Interviewing",
    "AwaitingOffer",
    "Rejected",
]
RecruiterStatus = Literal["Pending", "Reviewing", "InterviewRequested", "Accepted", "Rejected"]
RecruiterApplicationStatus = Literal["Pending", "Approved", "Rejected"]

TokenPurpose = Literal["access", "email_verify", "password_reset", "email_change"]


@dataclass(slots=True, frozen=True)
class Subject:
    user_id: str
    email: str
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return ADMIN in self.roles

    @property
    def is_recruiter(self) -> bool:
        return RECRUITER in self.roles
