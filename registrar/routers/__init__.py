"""
Routers package initialization.

This module imports all routers to make them available from a single import point.
"""

from registrar.routers.admin import router as admin_router
from registrar.routers.auth import router as auth_router
from registrar.routers.dashboard import router as dashboard_router
from registrar.routers.departments import router as departments_router
from registrar.routers.document_types import router as document_types_router
from registrar.routers.health import router as health_router
from registrar.routers.reports import router as reports_router
from registrar.routers.requests import router as requests_router

__all__ = [
    "admin_router",
    "auth_router",
    "dashboard_router",
    "departments_router",
    "document_types_router",
    "health_router",
    "reports_router",
    "requests_router",
]
