from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobtracker.api.deps import get_current_subject, get_db, get_optional_subject
from jobtracker.api.schemas import (
    ApplicantResponse,
    JobApplicationResponse,
    JobPostingCreateRequest,
    JobPostingResponse,
    JobPostingUpdateRequest,
    MessageResponse,
)
from jobtracker.core.applications import JobApplicationService
from jobtracker.core.postings import JobPostingService
from jobtracker.db.models import JobPosting
from jobtracker.types import Subject

router = APIRouter(prefix="/api/jobpostings", tags=["job-postings"])


def _posting_response(posting: JobPosting) -> JobPostingResponse:
    response = JobPostingResponse.model_validate(posting)
    response.application_count = len(posting.applications)
    return response


@router.get("", response_model=list[JobPostingResponse])
def list_postings(
    include_inactive: bool = False,
    subject: Subject | None = Depends(get_optional_subject),
    db: Session = Depends(get_db),
) -> list[JobPostingResponse]:
    rows = JobPostingService(db).list_public(subject, include_inactive)
    return [_posting_response(row) for row in rows]


@router.get("/mine", response_model=list[JobPostingResponse])
def list_my_postings(
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> list[JobPostingResponse]:
    return [_posting_response(row) for row in JobPostingService(db).list_mine(subject)]


@router.get("/{posting_id}", response_model=JobPostingResponse)
def get_posting(
    posting_id: int,
    subject: Subject | None = Depends(get_optional_subject),
    db: Session = Depends(get_db),
) -> JobPostingResponse:
    return _posting_response(JobPostingService(db).get(subject, posting_id))


@router.post("", response_model=JobPostingResponse, status_code=201)
def create_posting(
    payload: JobPostingCreateRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobPostingResponse:
    return _posting_response(JobPostingService(db).create(subject, payload.model_dump()))


@router.put("/{posting_id}", response_model=JobPostingResponse)
def update_posting(
    posting_id: int,
    payload: JobPostingUpdateRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobPostingResponse:
    changes = payload.model_dump(exclude_unset=True)
    return _posting_response(JobPostingService(db).update(subject, posting_id, changes))


@router.delete("/{posting_id}", response_model=MessageResponse)
def delete_posting(
    posting_id: int,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> MessageResponse:
    removed = JobPostingService(db).delete(subject, posting_id)
    return MessageResponse(message=f"Job posting deleted along with {removed} applications")


@router.post("/{posting_id}/toggle-status", response_model=JobPostingResponse)
def toggle_posting(
    posting_id: int,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobPostingResponse:
    return _posting_response(JobPostingService(db).toggle(subject, posting_id))


@router.get("/{posting_id}/applicants", response_model=list[ApplicantResponse])
def list_applicants(
    posting_id: int,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> list[ApplicantResponse]:
    _, applications = JobApplicationService(db).applicants_for_posting(subject, posting_id)
    return [
        ApplicantResponse(
            **JobApplicationResponse.model_validate(application).model_dump(),
            applicant_email=application.user.email,
            applicant_name=application.user.user_name,
        )
        for application in applications
    ]
