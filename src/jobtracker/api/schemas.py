from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from jobtracker.types import JobStatus, RecruiterApplicationStatus, RecruiterStatus


class MessageResponse(BaseModel):
    message: str


# auth


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    user_name: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class GoogleLoginRequest(BaseModel):
    id_token: str = Field(min_length=1)


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str
    new_password: str


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    token: str


class AuthResponse(BaseModel):
    token: str | None
    user_id: str
    email: str
    user_name: str
    roles: list[str]
    email_confirmed: bool
    message: str = ""


# profile


class ProfileResponse(BaseModel):
    id: str
    email: str
    user_name: str
    phone_number: str | None
    email_confirmed: bool
    roles: list[str]
    created_at: datetime
    last_login_at: datetime | None
    application_count: int


class ProfileUpdateRequest(BaseModel):
    user_name: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=40)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class ChangeEmailRequest(BaseModel):
    new_email: EmailStr
    password: str


class ConfirmEmailChangeRequest(BaseModel):
    email: EmailStr
    new_email: EmailStr
    token: str


class DeleteAccountRequest(BaseModel):
    password: str


# job applications


class JobApplicationCreateRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    position: str = Field(min_length=1, max_length=255)
    status: JobStatus = "ApplicationNeeded"
    deadline: datetime
    notes: str = ""
    cover_letter: str | None = None


class JobApplicationUpdateRequest(BaseModel):
    company_name: str | None = Field(default=None, min_length=1, max_length=255)
    position: str | None = Field(default=None, min_length=1, max_length=255)
    status: JobStatus | None = None
    deadline: datetime | None = None
    notes: str | None = None
    cover_letter: str | None = None
    recruiter_status: RecruiterStatus | None = None
    recruiter_feedback: str | None = None


class RecruiterStatusRequest(BaseModel):
    recruiter_status: RecruiterStatus
    feedback: str | None = None


class JobApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    job_posting_id: int | None
    company_name: str
    position: str
    status: str
    deadline: datetime
    notes: str
    cover_letter: str | None
    cv_file_path: str | None
    recruiter_status: str | None
    recruiter_feedback: str | None
    applied_at: datetime | None
    created_at: datetime


class ApplicantResponse(JobApplicationResponse):
    applicant_email: str
    applicant_name: str


# job postings


class JobPostingCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    company_name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    location: str | None = None
    is_remote: bool = False
    salary_range: str | None = None
    requirements: str = Field(min_length=1)
    application_deadline: datetime


class JobPostingUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    company_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    location: str | None = None
    is_remote: bool | None = None
    salary_range: str | None = None
    requirements: str | None = Field(default=None, min_length=1)
    application_deadline: datetime | None = None
    is_active: bool | None = None


class JobPostingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recruiter_id: str
    title: str
    company_name: str
    description: str
    location: str | None
    is_remote: bool
    salary_range: str | None
    requirements: str
    posted_date: datetime
    application_deadline: datetime
    is_active: bool
    application_count: int = 0


# recruiter applications


class RecruiterApplicationRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    company_website: str = Field(min_length=1, max_length=500)
    job_title: str = Field(min_length=1, max_length=255)
    motivation: str = Field(min_length=1)


class RejectRequest(BaseModel):
    reason: str = ""


class RecruiterApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    company_name: str
    company_website: str
    job_title: str
    motivation: str
    application_date: datetime
    status: RecruiterApplicationStatus
    reviewed_by_user_id: str | None
    review_date: datetime | None
    rejection_reason: str | None


# admin


class RoleRequest(BaseModel):
    email: EmailStr
    role: str = Field(min_length=1)


class AdminCreateUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    roles: list[str] | None = None


class CreateRoleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class AdminUserResponse(BaseModel):
    id: str
    email: str
    user_name: str
    email_confirmed: bool
    roles: list[str]
    created_at: datetime
    last_login_at: datetime | None
    job_count: int


class AdminUserDetailResponse(AdminUserResponse):
    applications: list[JobApplicationResponse]


class AdminJobResponse(JobApplicationResponse):
    user_email: str


class UserApplicationCount(BaseModel):
    user_id: str
    email: str
    count: int


class AdminStatsResponse(BaseModel):
    total_users: int
    total_applications: int
    applications_by_status: dict[str, int]
    applications_per_user: list[UserApplicationCount]
    upcoming_deadlines: list[JobApplicationResponse]


class DeletionResponse(BaseModel):
    message: str
    applications_removed: int
    postings_removed: int
    files_removed: int
