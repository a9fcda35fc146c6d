from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from hrportal.models.job import ApplicationStatus, JobStatus, JobType
from hrportal.schemas.common import CamelModel


class JobCompany(CamelModel):
    id: int
    name: str


class JobOut(CamelModel):
    id: int
    title: str
    description: str
    requirements: Optional[str] = None
    location: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    type: JobType
    status: JobStatus
    department: Optional[str] = None
    employer_id: Optional[int] = None
    company_id: int
    created_at: datetime
    company: Optional[JobCompany] = None
    application_count: int = 0


class JobCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    requirements: Optional[str] = None
    location: Optional[str] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    type: JobType = JobType.FULL_TIME
    department: Optional[str] = None

    @model_validator(mode="after")
    def _check_salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_max < self.salary_min:
            raise ValueError("salaryMax must not be below salaryMin")
        return self


class ApplicationOut(CamelModel):
    id: int
    job_id: int
    applicant_id: int
    cover_letter: Optional[str] = None
    status: ApplicationStatus
    applied_at: datetime
    job: Optional[JobOut] = None


class ApplicationCreate(CamelModel):
    job_id: int
    cover_letter: Optional[str] = None


class ApplicationList(CamelModel):
    applications: List[ApplicationOut]
