"""
Reference data models: courses, purposes and document types.

Course and purpose rows are shared by every submission and are only ever
created through ``registrar.db.upsert.upsert_and_fetch``.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Numeric, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from registrar.models.base import Base
from registrar.utils.dates import utcnow

NOT_APPLICABLE_COURSE = "Not Applicable"
NOT_SPECIFIED_PURPOSE = "Not Specified"


class Course(Base):
    """
    Course or program a requester is (or was) enrolled in.

    Unique by (name, educational level). The owning department stays null
    until some submission can derive it.
    """

    __tablename__ = "courses"
    __table_args__ = (
        UniqueConstraint("name", "educational_level", name="uq_courses_name_level"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False, default=NOT_APPLICABLE_COURSE)
    educational_level = Column(String(50), nullable=False, default="")
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    department = relationship("Department", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name='{self.name}', level='{self.educational_level}')>"


class Purpose(Base):
    """Reason a document is requested, with optional free-text detail."""

    __tablename__ = "purposes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False, unique=True, default=NOT_SPECIFIED_PURPOSE)
    other_purpose = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<Purpose(id={self.id}, name='{self.name}')>"


class DocumentType(Base):
    """A requestable document and its current unit price."""

    __tablename__ = "document_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<DocumentType(id={self.id}, name='{self.name}', price={self.base_price})>"
