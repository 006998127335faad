"""
Requester models.

Students and alumni are separate tables: a student is identified by student
number, an alumnus by email. Both are upserted on every submission.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from registrar.models.base import Base
from registrar.utils.dates import utcnow


class Student(Base):
    """Currently enrolled student."""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_number = Column(String(30), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    email = Column(String(150), nullable=True)
    contact_no = Column(String(30), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    department = relationship("Department", lazy="selectin")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.middle_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, student_number='{self.student_number}')>"


class Alumni(Base):
    """Graduate requesting documents; linked to a department directly."""

    __tablename__ = "alumni"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(150), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    contact_no = Column(String(30), nullable=True)
    year_graduated = Column(String(10), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    department = relationship("Department", lazy="selectin")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.middle_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<Alumni(id={self.id}, email='{self.email}')>"
