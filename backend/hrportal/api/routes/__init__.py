from fastapi import APIRouter

from hrportal.api.routes import (
    ai,
    auth,
    compliance,
    documents,
    employees,
    government,
    jobs,
    leaves,
    payroll,
    stats,
    webhook,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(employees.profile_router, prefix="/employee", tags=["employees"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(payroll.router, prefix="/payroll", tags=["payroll"])
api_router.include_router(leaves.router, prefix="/leaves", tags=["leaves"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(jobs.applications_router, prefix="/applications", tags=["jobs"])
api_router.include_router(stats.router, tags=["stats"])
api_router.include_router(compliance.router, prefix="/compliance", tags=["compliance"])
api_router.include_router(government.router, prefix="/government", tags=["government"])
api_router.include_router(webhook.router, prefix="/webhook", tags=["webhook"])
api_router.include_router(ai.router, prefix="/ai", tags=["ai"])
api_router.include_router(ai.ta_router, prefix="/ta-agent", tags=["ai"])
