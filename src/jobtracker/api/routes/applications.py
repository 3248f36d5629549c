from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from jobtracker.api.deps import get_current_subject, get_db
from jobtracker.api.schemas import (
    JobApplicationCreateRequest,
    JobApplicationResponse,
    JobApplicationUpdateRequest,
    MessageResponse,
    RecruiterStatusRequest,
)
from jobtracker.core.applications import CvUpload, JobApplicationService
from jobtracker.types import Subject

router = APIRouter(prefix="/api/jobapplications", tags=["job-applications"])


@router.get("", response_model=list[JobApplicationResponse])
def list_applications(
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> list[JobApplicationResponse]:
    rows = JobApplicationService(db).list_for(subject)
    return [JobApplicationResponse.model_validate(row) for row in rows]


@router.get("/{application_id}", response_model=JobApplicationResponse)
def get_application(
    application_id: int,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobApplicationResponse:
    return JobApplicationResponse.model_validate(JobApplicationService(db).get(subject, application_id))


@router.post("", response_model=JobApplicationResponse, status_code=201)
def create_application(
    payload: JobApplicationCreateRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobApplicationResponse:
    application = JobApplicationService(db).create_manual(subject, payload.model_dump())
    return JobApplicationResponse.model_validate(application)


@router.put("/{application_id}", response_model=JobApplicationResponse)
def update_application(
    application_id: int,
    payload: JobApplicationUpdateRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobApplicationResponse:
    changes = payload.model_dump(exclude_unset=True)
    application = JobApplicationService(db).update(subject, application_id, changes)
    return JobApplicationResponse.model_validate(application)


@router.delete("/{application_id}", response_model=MessageResponse)
def delete_application(
    application_id: int,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> MessageResponse:
    JobApplicationService(db).delete(subject, application_id)
    return MessageResponse(message="Job application deleted")


@router.post("/apply/{job_posting_id}", response_model=JobApplicationResponse, status_code=201)
def apply_to_posting(
    job_posting_id: int,
    notes: str = Form(""),
    cover_letter: str | None = Form(None),
    cv: UploadFile | None = File(None),
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobApplicationResponse:
    upload = None
    if cv is not None and cv.filename:
        upload = CvUpload(stream=cv.file, filename=cv.filename, size=cv.size)
    application = JobApplicationService(db).apply_to_posting(
        subject,
        job_posting_id,
        notes=notes,
        cover_letter=cover_letter,
        cv=upload,
    )
    return JobApplicationResponse.model_validate(application)


@router.put("/{application_id}/recruiter-status", response_model=JobApplicationResponse)
def update_recruiter_status(
    application_id: int,
    payload: RecruiterStatusRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> JobApplicationResponse:
    application = JobApplicationService(db).review(
        subject,
        application_id,
        payload.recruiter_status,
        payload.feedback,
    )
    return JobApplicationResponse.model_validate(application)
