from datetime import datetime
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from hrportal.db.base_class import Base


class Payroll(Base):
    """One pay slip per employee per (month, year)."""
    __tablename__ = "payrolls"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    basic_salary = Column(Float, nullable=False)
    allowances = Column(Float, nullable=False, default=0.0)
    deductions = Column(Float, nullable=False, default=0.0)
    epf_amount = Column(Float, nullable=False, default=0.0)
    socso_amount = Column(Float, nullable=False, default=0.0)
    eis_amount = Column(Float, nullable=False, default=0.0)
    tax_amount = Column(Float, nullable=False, default=0.0)
    net_salary = Column(Float, nullable=False)

    paid_at = Column(DateTime, nullable=True)  # Null until the payment is made
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    employee = relationship("Employee", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('employee_id', 'month', 'year', name='uq_payrolls_employee_period'),
        Index('ix_payrolls_period', 'year', 'month'),
    )
