from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text

from hrportal.db.base_class import Base


class Company(Base):
    """Tenant boundary: every employee belongs to exactly one company."""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    registration_no = Column(String(50), unique=True, nullable=False)
    address = Column(Text, nullable=True)
    contact_no = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
