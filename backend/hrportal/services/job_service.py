import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrportal.models.employee import Employee
from hrportal.models.job import Job, JobApplication, JobStatus
from hrportal.schemas.job import ApplicationCreate, JobCreate, JobOut
from hrportal.services.access import Principal

logger = logging.getLogger("hrportal.jobs")


async def list_jobs(
    db: AsyncSession,
    department: Optional[str] = None,
    location: Optional[str] = None,
    job_type: Optional[str] = None,
    status: str = JobStatus.OPEN.value,
) -> list[JobOut]:
    """Public job board, newest first, with the number of applications per posting."""
    counts = (
        select(JobApplication.job_id, func.count(JobApplication.id).label("n"))
        .group_by(JobApplication.job_id)
        .subquery()
    )
    stmt = (
        select(Job, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.job_id == Job.id)
        .where(Job.status == status)
    )
    if department:
        stmt = stmt.where(Job.department == department)
    if location:
        stmt = stmt.where(Job.location == location)
    if job_type:
        stmt = stmt.where(Job.type == job_type)

    result = await db.execute(stmt.order_by(Job.created_at.desc(), Job.id.desc()))
    return [
        JobOut.model_validate(job).model_copy(update={"application_count": count})
        for job, count in result.all()
    ]


async def create_job(db: AsyncSession, principal: Principal, data: JobCreate) -> Job:
    """Post an opening for the caller's own company."""
    job = Job(
        **data.model_dump(exclude={"type"}),
        type=data.type.value,
        status=JobStatus.OPEN.value,
        employer_id=principal.employee_id,
        company_id=principal.company_id,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)

    logger.info(f"Job {job.id} '{job.title}' posted by user {principal.id}")
    return job


async def list_applications(
    db: AsyncSession, principal: Principal, status: Optional[str] = None
) -> list[JobApplication]:
    stmt = select(JobApplication).where(JobApplication.applicant_id == principal.employee_id)
    if status:
        stmt = stmt.where(JobApplication.status == status)
    result = await db.execute(stmt.order_by(JobApplication.applied_at.desc(), JobApplication.id.desc()))
    return list(result.scalars().all())


async def apply_for_job(db: AsyncSession, principal: Principal, data: ApplicationCreate) -> JobApplication:
    job = (await db.execute(
        select(Job).where(Job.id == data.job_id, Job.status == JobStatus.OPEN.value)
    )).scalar_one_or_none()
    if job is None:
        raise NotFoundError("Job not found or not open for applications")

    duplicate = await db.execute(
        select(JobApplication.id).where(
            JobApplication.job_id == job.id,
            JobApplication.applicant_id == principal.employee_id,
        )
    )
    if duplicate.first() is not None:
        raise ConflictError("You have already applied for this job")

    application = JobApplication(
        job=job,
        applicant_id=principal.employee_id,
        cover_letter=data.cover_letter,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("You have already applied for this job")
    await db.refresh(application)

    logger.info(f"User {principal.id} applied for job {job.id}")
    return application


def _candidate_profile(employee: Employee, application: JobApplication) -> dict:
    return {
        "id": employee.id,
        "firstName": employee.first_name,
        "lastName": employee.last_name,
        "email": employee.email,
        "department": employee.department,
        "position": employee.position,
        "coverLetter": application.cover_letter,
    }


async def match_candidates(
    db: AsyncSession,
    principal: Principal,
    scorer: Callable[[dict, dict], Awaitable[dict]],
    job_id: int,
    candidate_ids: Optional[list[int]] = None,
) -> dict:
    """
    Score a posting's applicants against it, best match first.

    ``scorer`` gets a candidate profile and the job and returns ``score`` and
    ``reasons``. Only applicants of a job owned by the caller's company are
    considered; ``candidate_ids`` narrows them further.
    """
    job = (await db.execute(
        select(Job).where(Job.id == job_id, Job.company_id == principal.company_id)
    )).scalar_one_or_none()
    if job is None:
        raise NotFoundError("Job not found")

    stmt = (
        select(Employee, JobApplication)
        .join(JobApplication, JobApplication.applicant_id == Employee.id)
        .where(JobApplication.job_id == job.id)
    )
    if candidate_ids:
        stmt = stmt.where(Employee.id.in_(candidate_ids))
    rows = (await db.execute(stmt.order_by(Employee.id))).all()
    if not rows:
        raise ValidationError("No valid candidates found")

    job_data = {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "requirements": job.requirements,
    }
    candidates = [_candidate_profile(employee, application) for employee, application in rows]
    scores = await asyncio.gather(*(scorer(candidate, job_data) for candidate in candidates))

    matches = [
        {"candidate": candidate, "score": result["score"], "reasons": result["reasons"]}
        for candidate, result in zip(candidates, scores)
    ]
    matches.sort(key=lambda m: m["score"], reverse=True)

    logger.info(f"Matched {len(matches)} candidates for job {job.id} for user {principal.id}")
    return {"job": job_data, "matches": matches}
