"""
Models package initialization.

This module imports all models to ensure they are registered with SQLAlchemy.
"""

from registrar.models.base import Base

from registrar.models.department import Department, staff_departments
from registrar.models.user import User
from registrar.models.reference import Course, Purpose, DocumentType
from registrar.models.requester import Student, Alumni
from registrar.models.request import (
    DocumentRequest,
    RequestDocumentLine,
    TrackingEntry,
    StatusLookup,
    RequestStatus,
    RequesterKind,
)


__all__ = [
    "Base",
    "Department",
    "staff_departments",
    "User",
    "Course",
    "Purpose",
    "DocumentType",
    "Student",
    "Alumni",
    "DocumentRequest",
    "RequestDocumentLine",
    "TrackingEntry",
    "StatusLookup",
    "RequestStatus",
    "RequesterKind",
]
