"""
Shared test fixtures for the HR Portal backend tests.

API tests run the real application against an in-memory SQLite database
seeded with two companies, so tenancy boundaries are exercised end to end.
"""
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import AsyncGenerator, Dict

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GOVERNMENT_SANDBOX"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hrportal.api.deps import get_db
from hrportal.core.security import create_access_token, get_password_hash
from hrportal.db.base import Base
from hrportal.main import app
from hrportal.models.company import Company
from hrportal.models.document import Document
from hrportal.models.employee import Employee, EmployeeStatus, Role
from hrportal.models.job import Job, JobStatus, JobType
from hrportal.models.leave import Leave, LeaveStatus, LeaveType
from hrportal.models.payroll import Payroll
from hrportal.services.access import Principal
from hrportal.services.agents import build_coordinator
from hrportal.services.government import GovernmentGateways

TEST_DATABASE_URL = "sqlite+aiosqlite://"

PASSWORDS = {
    "admin": "admin123",
    "hr": "hr123",
    "manager": "manager123",
    "employee": "employee123",
    "colleague": "colleague123",
    "other_admin": "other123",
    "other_employee": "other123",
}


@dataclass
class SeedData:
    """Primary keys and tokens for the seeded rows."""
    company_id: int = 0
    other_company_id: int = 0
    employees: Dict[str, int] = field(default_factory=dict)
    tokens: Dict[str, str] = field(default_factory=dict)
    payrolls: Dict[str, int] = field(default_factory=dict)
    documents: Dict[str, int] = field(default_factory=dict)
    leaves: Dict[str, int] = field(default_factory=dict)
    jobs: Dict[str, int] = field(default_factory=dict)

    def headers(self, who: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens[who]}"}


def _employee(key: str, code: str, role: Role, company: Company, **extra) -> Employee:
    first, _, last = extra.pop("name", f"{key.title()} User").partition(" ")
    values = dict(
        employee_id=code,
        first_name=first,
        last_name=last or "User",
        email=f"{key.replace('_', '.')}@{'company' if company.registration_no == '123456-A' else 'other'}.com",
        date_joined=date(2022, 1, 1),
        department="Engineering",
        position="Engineer",
        salary=5000.0,
        role=role.value,
        status=EmployeeStatus.ACTIVE.value,
        hashed_password=get_password_hash(PASSWORDS[key]),
        company=company,
    )
    values.update(extra)
    return Employee(**values)


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory) -> SeedData:
    """
    Two companies. The first has ADMIN, HR, MANAGER and two EMPLOYEE
    accounts; the second an ADMIN and an EMPLOYEE.
    """
    data = SeedData()
    today = date.today()

    async with session_factory() as db:
        company = Company(name="Tech Solutions Sdn Bhd", registration_no="123456-A")
        other = Company(name="Other Holdings Bhd", registration_no="999999-Z")
        db.add_all([company, other])

        people = {
            "admin": _employee("admin", "EMP001", Role.ADMIN, company, name="Ahmad Rahman",
                               department="Administration", salary=8000.0),
            "hr": _employee("hr", "EMP002", Role.HR, company, name="Siti Nurhaliza",
                            department="Human Resources", salary=6500.0),
            "employee": _employee("employee", "EMP003", Role.EMPLOYEE, company, name="Lim Wei",
                                  salary=7500.0, nric="880312-07-9012"),
            "manager": _employee("manager", "EMP004", Role.MANAGER, company, name="Raj Kumar"),
            "colleague": _employee("colleague", "EMP005", Role.EMPLOYEE, company, name="Tan Mei",
                                   department="Finance"),
            "other_admin": _employee("other_admin", "OTH001", Role.ADMIN, other, name="Other Admin"),
            "other_employee": _employee("other_employee", "OTH002", Role.EMPLOYEE, other,
                                        name="Other Worker"),
        }
        db.add_all(people.values())
        await db.flush()

        payrolls = {
            "employee": Payroll(employee=people["employee"], month=1, year=2025, basic_salary=7500.0,
                                net_salary=6000.0),
            "colleague": Payroll(employee=people["colleague"], month=1, year=2025, basic_salary=5000.0,
                                 net_salary=4100.0, paid_at=datetime(2025, 1, 31)),
            "other_employee": Payroll(employee=people["other_employee"], month=1, year=2025,
                                      basic_salary=5000.0, net_salary=4000.0),
        }
        documents = {
            "employee": Document(employee=people["employee"], name="Offer letter", type="CONTRACT",
                                 key="3-1-offer.pdf", url="data:application/pdf;base64,AA=="),
            "other_employee": Document(employee=people["other_employee"], name="Offer letter",
                                       type="CONTRACT", key="7-1-offer.pdf",
                                       url="data:application/pdf;base64,AA=="),
        }
        leaves = {
            "employee_pending": Leave(employee=people["employee"], type=LeaveType.SICK.value,
                                      status=LeaveStatus.PENDING.value,
                                      start_date=date(today.year, 3, 2), end_date=date(today.year, 3, 3)),
            "other_pending": Leave(employee=people["other_employee"], type=LeaveType.ANNUAL.value,
                                   status=LeaveStatus.PENDING.value,
                                   start_date=date(today.year, 4, 6), end_date=date(today.year, 4, 7)),
        }
        jobs = {
            "open": Job(title="Senior Software Engineer", description="Build things", company=company,
                        type=JobType.FULL_TIME.value, status=JobStatus.OPEN.value,
                        department="Engineering", location="Kuala Lumpur"),
            "closed": Job(title="Archivist", description="Closed role", company=company,
                          type=JobType.CONTRACT.value, status=JobStatus.CLOSED.value),
        }
        db.add_all([*payrolls.values(), *documents.values(), *leaves.values(), *jobs.values()])
        await db.commit()

        data.company_id = company.id
        data.other_company_id = other.id
        for key, employee in people.items():
            data.employees[key] = employee.id
            data.tokens[key] = create_access_token(Principal.from_employee(employee).claims())
        data.payrolls = {key: p.id for key, p in payrolls.items()}
        data.documents = {key: d.id for key, d in documents.items()}
        data.leaves = {key: leave.id for key, leave in leaves.items()}
        data.jobs = {key: j.id for key, j in jobs.items()}

    return data


class ScriptedLLM:
    """Stands in for LLMClient: records prompts and answers from ``responder``."""

    provider = "ollama"
    model = "test-model"

    def __init__(self):
        self.calls = []
        self.responder = lambda messages, schema: schema

    async def complete_json(self, messages, schema, temperature=0.3, max_tokens=None):
        self.calls.append({"messages": messages, "schema": schema})
        return self.responder(messages, schema)


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest_asyncio.fixture
async def client(engine, session_factory, llm) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, with the database swapped for the test engine."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    gateways = GovernmentGateways.from_settings()
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.gateways = gateways
    app.state.agents = build_coordinator(llm)
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await gateways.close()


@pytest.fixture
def principal_factory():
    """Build a Principal without touching the database."""
    def _make(role: str = Role.EMPLOYEE.value, id: int = 1, company_id: int = 1) -> Principal:
        return Principal(
            id=id,
            email=f"user{id}@company.com",
            name=f"User {id}",
            role=role,
            department="Engineering",
            company_id=company_id,
            employee_code=f"EMP{id:03d}",
        )
    return _make
