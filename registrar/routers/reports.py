"""
Report API endpoints.
This module provides the date-range request report.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.core.rbac import Principal, get_principal
from registrar.db.session import get_db
from registrar.schemas.report import RequestReport
from registrar.services.report import ReportService

router = APIRouter()


@router.get("/requests", response_model=RequestReport)
async def generate_request_report(
    start_date: str = Query(..., description="First day, YYYY-MM-DD"),
    end_date: str = Query(..., description="Last day (inclusive), YYYY-MM-DD"),
    department_id: Optional[int] = Query(None, description="Department ID to filter by"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> RequestReport:
    """
    Generate a request report for an inclusive date range.

    Args:
        start_date: First day of the period
        end_date: Last day of the period
        department_id: Optional department filter; staff must be assigned to it
        db: Database session
        principal: Caller

    Returns:
        Per-status summary, billed total and the matching requests
    """
    logger.info(f"Request report requested by {principal}: {start_date} .. {end_date}")
    return await ReportService.request_report(db, principal, start_date, end_date, department_id)
