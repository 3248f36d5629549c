from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jobtracker.api.deps import get_current_subject, get_db
from jobtracker.api.schemas import (
    AdminCreateUserRequest,
    AdminJobResponse,
    AdminStatsResponse,
    AdminUserDetailResponse,
    AdminUserResponse,
    CreateRoleRequest,
    DeletionResponse,
    JobApplicationResponse,
    MessageResponse,
    RoleRequest,
    UserApplicationCount,
)
from jobtracker.core.admin import AdminService
from jobtracker.db.models import User
from jobtracker.types import Subject

router = APIRouter(prefix="/api/admin", tags=["admin"])


def get_admin_service(
    subject: Subject = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> AdminService:
    return AdminService(db, subject)


def _user_response(user: User, job_count: int) -> AdminUserResponse:
    return AdminUserResponse(
        id=user.id,
        email=user.email,
        user_name=user.user_name,
        email_confirmed=user.email_confirmed,
        roles=user.role_names,
        created_at=user.created_at,
        last_login_at=user.last_login_at,
        job_count=job_count,
    )


@router.get("/users", response_model=list[AdminUserResponse])
def list_users(service: AdminService = Depends(get_admin_service)) -> list[AdminUserResponse]:
    return [_user_response(user, count) for user, count in service.list_users()]


@router.get("/users/{user_id}", response_model=AdminUserDetailResponse)
def get_user(user_id: str, service: AdminService = Depends(get_admin_service)) -> AdminUserDetailResponse:
    user, applications = service.get_user(user_id)
    return AdminUserDetailResponse(
        **_user_response(user, len(applications)).model_dump(),
        applications=[JobApplicationResponse.model_validate(row) for row in applications],
    )


@router.post("/users", response_model=AdminUserResponse, status_code=201)
def create_user(payload: AdminCreateUserRequest, service: AdminService = Depends(get_admin_service)) -> AdminUserResponse:
    user = service.create_user(payload.email, payload.password, payload.roles)
    return _user_response(user, 0)


@router.delete("/users/{user_id}", response_model=DeletionResponse)
def delete_user(user_id: str, service: AdminService = Depends(get_admin_service)) -> DeletionResponse:
    report = service.delete_user(user_id)
    return DeletionResponse(
        message=f"User {report.email} deleted",
        applications_removed=report.applications_removed,
        postings_removed=report.postings_removed,
        files_removed=report.files_removed,
    )


@router.post("/assign-role", response_model=MessageResponse)
def assign_role(payload: RoleRequest, service: AdminService = Depends(get_admin_service)) -> MessageResponse:
    changed = service.assign_role(payload.email, payload.role)
    if not changed:
        return MessageResponse(message=f"User already has role {payload.role}")
    return MessageResponse(message=f"Role {payload.role} assigned to {payload.email}")


@router.post("/remove-role", response_model=MessageResponse)
def remove_role(payload: RoleRequest, service: AdminService = Depends(get_admin_service)) -> MessageResponse:
    service.remove_role(payload.email, payload.role)
    return MessageResponse(message=f"Role {payload.role} removed from {payload.email}")


@router.get("/roles", response_model=list[str])
def list_roles(service: AdminService = Depends(get_admin_service)) -> list[str]:
    return service.list_roles()


@router.post("/roles", response_model=MessageResponse)
def create_role(payload: CreateRoleRequest, service: AdminService = Depends(get_admin_service)) -> MessageResponse:
    if not service.create_role(payload.name):
        return MessageResponse(message=f"Role {payload.name} already exists")
    return MessageResponse(message=f"Role {payload.name} created")


@router.get("/jobs", response_model=list[AdminJobResponse])
def list_jobs(service: AdminService = Depends(get_admin_service)) -> list[AdminJobResponse]:
    return [
        AdminJobResponse(
            **JobApplicationResponse.model_validate(row).model_dump(),
            user_email=row.user.email,
        )
        for row in service.list_jobs()
    ]


@router.get("/stats", response_model=AdminStatsResponse)
def stats(service: AdminService = Depends(get_admin_service)) -> AdminStatsResponse:
    result = service.stats()
    return AdminStatsResponse(
        total_users=result.total_users,
        total_applications=result.total_applications,
        applications_by_status=result.applications_by_status,
        applications_per_user=[UserApplicationCount(**row) for row in result.applications_per_user],
        upcoming_deadlines=[JobApplicationResponse.model_validate(row) for row in result.upcoming_deadlines],
    )
