import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrportal.api.deps import get_current_principal, get_db
from hrportal.core.config import settings
from hrportal.core.exceptions import AuthenticationError, NotFoundError
from hrportal.core.rate_limiter import RateLimits, limiter
from hrportal.core.security import create_access_token, verify_password
from hrportal.models.employee import Employee
from hrportal.schemas.auth import LoginRequest, LoginResponse, MeResponse, UserOut
from hrportal.schemas.common import MessageResponse
from hrportal.services.access import Principal

logger = logging.getLogger("hrportal.auth")

router = APIRouter()


def _serialize_user(employee: Employee) -> UserOut:
    return UserOut(
        id=employee.id,
        email=employee.email,
        name=employee.full_name,
        first_name=employee.first_name,
        last_name=employee.last_name,
        role=employee.role,
        department=employee.department,
        position=employee.position,
        employee_id=employee.employee_id,
        company_id=employee.company_id,
        company=employee.company.name if employee.company else None,
    )


async def _load_employee(db: AsyncSession, *criteria) -> Optional[Employee]:
    result = await db.execute(
        select(Employee).where(*criteria).options(selectinload(Employee.company))
    )
    return result.scalar_one_or_none()


async def _authenticate_user(email: str, password: str, db: AsyncSession) -> Employee:
    """
    Check an email/password pair against the stored bcrypt hash.

    Unknown email, wrong password and inactive accounts all fail the same way.
    """
    employee = await _load_employee(db, Employee.email == email)
    if employee is None or not verify_password(password, employee.hashed_password):
        logger.info(f"Failed login attempt for {email}")
        raise AuthenticationError("Invalid credentials")
    if not employee.is_active:
        logger.info(f"Login refused for {employee.status.lower()} account {email}")
        raise AuthenticationError("Invalid credentials")
    return employee


@router.post("/login", response_model=LoginResponse)
@limiter.limit(RateLimits.AUTH_LOGIN)
async def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Exchange credentials for a signed token.

    The token is returned in the body and also set as an HTTP-only cookie so
    browser clients stay signed in without handling it.
    """
    employee = await _authenticate_user(login_data.email, login_data.password, db)
    token = create_access_token(Principal.from_employee(employee).claims())

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.AUTH_TOKEN_MAX_AGE,
        path="/",
    )

    logger.info(f"User {employee.id} ({employee.role}) logged in")
    return LoginResponse(user=_serialize_user(employee), token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> Any:
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=MeResponse)
async def read_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Current user, reloaded from the database."""
    employee = await _load_employee(db, Employee.id == principal.id)
    if employee is None:
        raise NotFoundError("User not found")
    return MeResponse(user=_serialize_user(employee))
