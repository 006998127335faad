"""
Pydantic schemas for request reports and the dashboard.
"""

from typing import List, Optional
from datetime import date, datetime

from registrar.schemas.request import CamelModel, RequestRead, StatusCounts


class ReportPeriod(CamelModel):
    start_date: date
    end_date: date


class ReportSummary(StatusCounts):
    """Per-status counts plus the amount billed in the period."""

    total_amount: float = 0.0


class RequestReport(CamelModel):
    """Date-range report: aggregate counts alongside the rows."""

    period: ReportPeriod
    department_id: Optional[int] = None
    generated_at: datetime
    summary: ReportSummary
    requests: List[RequestRead]


class DashboardData(CamelModel):
    counts: StatusCounts
    released_today: int
    recent_requests: List[RequestRead]
    departments: Optional[List[int]] = None
