"""
Seed a demo company with one ADMIN, one HR and one EMPLOYEE account plus a
few open job postings.

Run from the backend directory after migrating:
    alembic upgrade head
    python scripts/seed_demo.py

Existing demo accounts get their password and status reset.
"""

import asyncio
import logging
from datetime import date

from sqlalchemy import select

from hrportal.core.logging_config import setup_logging
from hrportal.core.security import get_password_hash
from hrportal.db.session import build_session_factory, create_engine
from hrportal.models.company import Company
from hrportal.models.employee import Employee, EmployeeStatus, Role
from hrportal.models.job import Job, JobStatus, JobType

logger = logging.getLogger("hrportal.seed")

COMPANY = {
    "name": "Tech Solutions Sdn Bhd",
    "registration_no": "123456-A",
    "address": "123 Jalan Bukit Bintang, 50200 Kuala Lumpur",
    "contact_no": "+60312345678",
    "email": "info@techsolutions.com.my",
}

DEMO_ACCOUNTS = [
    {
        "employee_id": "EMP001",
        "first_name": "Ahmad",
        "last_name": "Rahman",
        "nric": "850101-01-1234",
        "email": "admin@company.com",
        "password": "admin123",
        "phone": "+60123456789",
        "date_of_birth": date(1985, 1, 1),
        "date_joined": date(2020, 1, 1),
        "department": "Administration",
        "position": "System Administrator",
        "salary": 8000.0,
        "role": Role.ADMIN,
    },
    {
        "employee_id": "EMP002",
        "first_name": "Siti",
        "last_name": "Nurhaliza",
        "nric": "900215-08-5678",
        "email": "hr@company.com",
        "password": "hr123",
        "phone": "+60123456790",
        "date_of_birth": date(1990, 2, 15),
        "date_joined": date(2021, 3, 1),
        "department": "Human Resources",
        "position": "HR Manager",
        "salary": 6500.0,
        "role": Role.HR,
    },
    {
        "employee_id": "EMP003",
        "first_name": "Lim",
        "last_name": "Wei Ming",
        "nric": "880312-07-9012",
        "email": "employee@company.com",
        "password": "employee123",
        "phone": "+60123456791",
        "date_of_birth": date(1988, 3, 12),
        "date_joined": date(2022, 1, 15),
        "department": "Engineering",
        "position": "Senior Developer",
        "salary": 7500.0,
        "role": Role.EMPLOYEE,
    },
]

DEMO_JOBS = [
    {
        "title": "Senior Software Engineer",
        "description": "We are looking for an experienced software engineer to join our team.",
        "requirements": "5+ years of experience in web development, React, Node.js, TypeScript",
        "department": "Engineering",
        "salary_min": 8000,
        "salary_max": 12000,
    },
    {
        "title": "HR Specialist",
        "description": "Join our HR team to help manage employee relations and development.",
        "requirements": "3+ years in HR, knowledge of Malaysian labor laws",
        "department": "Human Resources",
        "salary_min": 5000,
        "salary_max": 7000,
    },
]


async def seed() -> None:
    engine = create_engine()
    session_factory = build_session_factory(engine)

    async with session_factory() as db:
        company = (await db.execute(
            select(Company).where(Company.registration_no == COMPANY["registration_no"])
        )).scalar_one_or_none()
        if company is None:
            company = Company(**COMPANY)
            db.add(company)
            await db.flush()
            logger.info(f"Created company {company.name}")

        admin = None
        for account in DEMO_ACCOUNTS:
            fields = dict(account)
            password = fields.pop("password")
            role = fields.pop("role")

            employee = (await db.execute(
                select(Employee).where(Employee.email == fields["email"])
            )).scalar_one_or_none()
            if employee is None:
                employee = Employee(**fields, company_id=company.id)
                db.add(employee)
                logger.info(f"Created {role.value} account {fields['email']}")
            else:
                logger.info(f"Reset {role.value} account {fields['email']}")

            employee.hashed_password = get_password_hash(password)
            employee.role = role.value
            employee.status = EmployeeStatus.ACTIVE.value
            if role == Role.ADMIN:
                admin = employee

        await db.flush()

        existing_titles = set((await db.execute(
            select(Job.title).where(Job.company_id == company.id)
        )).scalars().all())
        for job in DEMO_JOBS:
            if job["title"] in existing_titles:
                continue
            db.add(Job(
                **job,
                location="Kuala Lumpur",
                type=JobType.FULL_TIME.value,
                status=JobStatus.OPEN.value,
                employer_id=admin.id if admin else None,
                company_id=company.id,
            ))

        await db.commit()

    await engine.dispose()
    logger.info("Demo data ready")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed())
