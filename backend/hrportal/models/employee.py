"""
Employee records. Credentials live on the same row: ``hashed_password`` is the
credential store consulted at login.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship

from hrportal.db.base_class import Base


class Role(str, Enum):
    ADMIN = "ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    TERMINATED = "TERMINATED"


DEFAULT_LEAVE_BALANCE = 14


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(50), unique=True, nullable=False, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    nric = Column(String(20), unique=True, nullable=True)
    passport_no = Column(String(50), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    date_joined = Column(Date, nullable=False)

    department = Column(String(100), nullable=True)
    position = Column(String(100), nullable=True)
    salary = Column(Float, nullable=False, default=0.0)

    # Statutory reference numbers
    epf_no = Column(String(50), nullable=True)
    socso_no = Column(String(50), nullable=True)
    tax_no = Column(String(50), nullable=True)
    bank_account = Column(String(50), nullable=True)

    role = Column(String(20), nullable=False, default=Role.EMPLOYEE.value)
    status = Column(String(20), nullable=False, default=EmployeeStatus.ACTIVE.value)
    leave_balance = Column(Integer, nullable=False, default=DEFAULT_LEAVE_BALANCE)

    hashed_password = Column(String(255), nullable=True)

    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = relationship("Company")

    __table_args__ = (
        Index('ix_employees_company_status', 'company_id', 'status'),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE.value
