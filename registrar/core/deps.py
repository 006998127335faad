"""
Dependencies for FastAPI endpoints.

This module wires services to their collaborators: the process-wide routing
configuration, the notifier and pagination parameters.
"""

from typing import Any

from fastapi import Depends, Query

from registrar.core.email import EmailService
from registrar.core.routing_config import RoutingConfig, get_routing_config
from registrar.services.routing import DepartmentRouter
from registrar.services.status import StatusService
from registrar.services.submission import SubmissionService
from registrar.utils.pagination import PaginationParams


def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Page size"),
    sort_by: str = Query("created_at", description="Field to sort by"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$", description="Sort order")
) -> PaginationParams:
    """
    Get pagination parameters from request query.

    Returns:
        PaginationParams object with extracted values
    """
    return PaginationParams(
        page=page,
        size=size,
        sort_by=sort_by,
        sort_order=sort_order
    )


def get_notifier() -> Any:
    """Outbound notification channel."""
    return EmailService


def get_department_router(config: RoutingConfig = Depends(get_routing_config)) -> DepartmentRouter:
    return DepartmentRouter(config)


def get_submission_service(
    router: DepartmentRouter = Depends(get_department_router),
    notifier: Any = Depends(get_notifier),
) -> SubmissionService:
    return SubmissionService(router, notifier=notifier)


def get_status_service(notifier: Any = Depends(get_notifier)) -> StatusService:
    return StatusService(notifier=notifier)
