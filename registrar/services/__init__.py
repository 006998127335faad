"""
Services package initialization.

This module imports all services to make them available from a single import point.
"""

from registrar.services.document_type import DocumentTypeService
from registrar.services.protection import RequestProtection
from registrar.services.reference_data import ReferenceDataService
from registrar.services.report import ReportService
from registrar.services.request_query import RequestQueryService
from registrar.services.routing import DepartmentRouter
from registrar.services.status import StatusService
from registrar.services.submission import SubmissionService
from registrar.services.user import UserService

__all__ = [
    "DocumentTypeService",
    "RequestProtection",
    "ReferenceDataService",
    "ReportService",
    "RequestQueryService",
    "DepartmentRouter",
    "StatusService",
    "SubmissionService",
    "UserService",
]
