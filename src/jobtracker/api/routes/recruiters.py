from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from jobtracker.api.deps import get_current_subject, get_db
from jobtracker.api.schemas import (
    RecruiterApplicationRequest,
    RecruiterApplicationResponse,
    RejectRequest,
)
from jobtracker.core.recruiters import RecruiterApplicationService
from jobtracker.types import Subject

router = APIRouter(prefix="/api/recruiterapplications", tags=["recruiter-applications"])


@router.post("", response_model=RecruiterApplicationResponse, status_code=201)
def submit_application(
    payload: RecruiterApplicationRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> RecruiterApplicationResponse:
    application = RecruiterApplicationService(db).submit(subject, payload.model_dump())
    return RecruiterApplicationResponse.model_validate(application)


@router.get("/mine", response_model=RecruiterApplicationResponse)
def my_application(
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> RecruiterApplicationResponse:
    application = RecruiterApplicationService(db).mine(subject)
    if application is None:
        raise HTTPException(status_code=404, detail="No recruiter application found")
    return RecruiterApplicationResponse.model_validate(application)


@router.get("", response_model=list[RecruiterApplicationResponse])
def list_applications(
    pending_only: bool = False,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> list[RecruiterApplicationResponse]:
    rows = RecruiterApplicationService(db).list_all(subject, pending_only)
    return [RecruiterApplicationResponse.model_validate(row) for row in rows]


@router.get("/{application_id}", response_model=RecruiterApplicationResponse)
def get_application(
    application_id: int,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> RecruiterApplicationResponse:
    application = RecruiterApplicationService(db).get(subject, application_id)
    return RecruiterApplicationResponse.model_validate(application)


@router.post("/{application_id}/approve", response_model=RecruiterApplicationResponse)
def approve_application(
    application_id: int,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> RecruiterApplicationResponse:
    application = RecruiterApplicationService(db).approve(subject, application_id)
    return RecruiterApplicationResponse.model_validate(application)


@router.post("/{application_id}/reject", response_model=RecruiterApplicationResponse)
def reject_application(
    application_id: int,
    payload: RejectRequest,
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> RecruiterApplicationResponse:
    application = RecruiterApplicationService(db).reject(subject, application_id, payload.reason)
    return RecruiterApplicationResponse.model_validate(application)
