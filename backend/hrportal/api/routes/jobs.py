from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.deps import get_current_principal, get_db, require_roles
from hrportal.models.job import ApplicationStatus, JobStatus, JobType
from hrportal.schemas.job import ApplicationCreate, ApplicationList, ApplicationOut, JobCreate, JobOut
from hrportal.services import job_service
from hrportal.services.access import HR_ROLES, Principal

router = APIRouter()
applications_router = APIRouter()


@router.get("", response_model=List[JobOut])
async def list_jobs(
    department: Optional[str] = None,
    location: Optional[str] = None,
    job_type: Optional[JobType] = Query(None, alias="type"),
    job_status: JobStatus = Query(JobStatus.OPEN, alias="status"),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Public job board."""
    return await job_service.list_jobs(
        db,
        department=department,
        location=location,
        job_type=job_type.value if job_type else None,
        status=job_status.value,
    )


@router.post("", response_model=JobOut, status_code=status.HTTP_201_CREATED)
async def create_job(
    job_in: JobCreate,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    job = await job_service.create_job(db, principal, job_in)
    return JobOut.model_validate(job)


@applications_router.get("", response_model=ApplicationList)
async def list_applications(
    application_status: Optional[ApplicationStatus] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """The caller's own job applications."""
    applications = await job_service.list_applications(
        db, principal, application_status.value if application_status else None
    )
    return ApplicationList(applications=[ApplicationOut.model_validate(a) for a in applications])


@applications_router.post("", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
async def apply_for_job(
    application_in: ApplicationCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    application = await job_service.apply_for_job(db, principal, application_in)
    return ApplicationOut.model_validate(application)
