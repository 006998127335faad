"""
Dashboard API endpoints.

This module provides the landing-page figures for staff and admins.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.core.rbac import Principal, get_principal
from registrar.db.session import get_db
from registrar.schemas.report import DashboardData
from registrar.schemas.request import RequestRead
from registrar.services.request_query import RequestQueryService

router = APIRouter()


@router.get("", response_model=DashboardData)
async def get_dashboard_data(
    department_id: Optional[int] = Query(None, alias="departmentId"),
    limit: int = Query(10, ge=1, le=50, description="Number of recent requests"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> DashboardData:
    """
    Get dashboard data for the caller's departments.

    Args:
        department_id: Optional narrowing department filter
        limit: Number of recent requests to include
        db: Database session
        principal: Caller

    Returns:
        Status counts, recent requests and today's releases
    """
    logger.info(f"Getting dashboard data for {principal}")
    data = await RequestQueryService.dashboard(db, principal, department_id, recent_limit=limit)
    return DashboardData(
        counts=data["counts"],
        released_today=data["released_today"],
        recent_requests=[RequestRead.from_request(item) for item in data["recent_requests"]],
        departments=data["departments"],
    )
