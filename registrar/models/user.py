"""
User model for staff and admin accounts.
This module defines the SQLAlchemy model for users who manage document requests.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from registrar.models.base import Base
from registrar.models.department import staff_departments
from registrar.core.security import get_password_hash
from registrar.utils.dates import utcnow


class User(Base):
    """
    User model representing registrar personnel.

    Users are either ``admin`` (every department) or ``staff`` (only the
    departments they are assigned to) and authenticate using JWT tokens.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(100), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default="staff")  # admin, staff
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Password reset fields
    reset_token = Column(String(255), nullable=True, index=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)

    departments = relationship(
        "Department",
        secondary=staff_departments,
        order_by="Department.id",
        lazy="selectin",
    )

    @property
    def department_ids(self) -> list[int]:
        return [department.id for department in self.departments]

    def __repr__(self) -> str:
        """String representation of the User model."""
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"

    def set_password(self, password: str) -> None:
        """Set the user's password."""
        self.hashed_password = get_password_hash(password)
