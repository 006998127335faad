"""
Service layer for request reports.

Reports cover requests created within an inclusive date range and are
always restricted to the caller's department scope.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.errors import ValidationError
from registrar.core.logging import logger
from registrar.core.rbac import Principal, apply_department_scope, department_scope
from registrar.models.request import DocumentRequest
from registrar.schemas.report import ReportPeriod, ReportSummary, RequestReport
from registrar.schemas.request import RequestRead
from registrar.services.request_query import RequestQueryService
from registrar.utils.dates import parse_iso_date, utcnow


def parse_report_period(start_date: str, end_date: str) -> Tuple[date, date]:
    """
    Validate a report date range.

    Raises:
        ValidationError: Missing or malformed dates, or start after end
    """
    errors = []
    start = parse_iso_date(start_date) if start_date else None
    end = parse_iso_date(end_date) if end_date else None
    if start is None:
        errors.append({"param": "start_date", "msg": "Start date must be in YYYY-MM-DD format"})
    if end is None:
        errors.append({"param": "end_date", "msg": "End date must be in YYYY-MM-DD format"})
    if errors:
        raise ValidationError(errors=errors)
    if start > end:
        raise ValidationError.for_field("start_date", "Start date cannot be after end date")
    return start, end


def _day_bounds(start: date, end: date) -> Tuple[datetime, datetime]:
    """First instant of ``start`` and first instant after ``end`` (UTC)."""
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return lower, upper


class ReportService:
    """Service class for request reports."""

    @staticmethod
    async def request_report(
        db: AsyncSession,
        principal: Principal,
        start_date: str,
        end_date: str,
        department_id: Optional[int] = None,
    ) -> RequestReport:
        """
        Generate the request report for a date range.

        Args:
            db: Database session
            principal: Caller; staff are limited to their departments
            start_date: First day, ``YYYY-MM-DD``
            end_date: Last day (inclusive), ``YYYY-MM-DD``
            department_id: Optional narrowing department filter

        Returns:
            Per-status summary and the matching rows, newest first

        Raises:
            AuthorizationError: Staff asked for a department outside their set
            ValidationError: Bad date range
        """
        scope = department_scope(principal, department_id)
        start, end = parse_report_period(start_date, end_date)
        lower, upper = _day_bounds(start, end)
        logger.info(f"Generating request report {start} .. {end} for {principal} (department={department_id})")

        summary_counts = await RequestQueryService.count_by_status(db, scope, lower, upper)

        query = select(DocumentRequest).where(
            DocumentRequest.created_at >= lower,
            DocumentRequest.created_at < upper,
        )
        query = apply_department_scope(query, DocumentRequest.department_id, scope)
        query = query.order_by(DocumentRequest.created_at.desc(), DocumentRequest.id.desc())
        rows = list((await db.execute(query)).scalars().all())

        summary = ReportSummary(
            **summary_counts.model_dump(),
            total_amount=float(sum(row.total_amount or 0 for row in rows)),
        )
        logger.info(f"Request report ready: {summary.total} requests")
        return RequestReport(
            period=ReportPeriod(start_date=start, end_date=end),
            department_id=department_id,
            generated_at=utcnow(),
            summary=summary,
            requests=[RequestRead.from_request(row) for row in rows],
        )
