"""
Department model for document request routing.

Departments are the organizational units requests are routed to and the unit
staff visibility is scoped by. Legacy rows may carry trailing carriage
return / line feed characters in their names, so every name comparison goes
through ``normalized_name`` (SQL) or ``normalize_department_name`` (Python).
"""
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.sql import func
from registrar.models.base import Base
from registrar.utils.dates import utcnow


staff_departments = Table(
    "staff_departments",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("department_id", Integer, ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=utcnow),
)


def normalize_department_name(name: Optional[str]) -> str:
    """Strip CR/LF artifacts and surrounding whitespace, then lower-case."""
    if not name:
        return ""
    return name.replace("\r", "").replace("\n", "").strip().lower()


def normalized_name(column):
    """SQL expression equivalent of ``normalize_department_name``."""
    return func.lower(func.trim(func.replace(func.replace(column, "\r", ""), "\n", "")))


class Department(Base):
    """
    Department model.

    Departments are reference data: created on demand through the upsert
    helper and never renamed by the request workflow.
    """

    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        """String representation of the Department model."""
        return f"<Department(id={self.id}, name='{self.name}')>"
