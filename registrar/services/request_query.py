"""
Service layer for reading document requests.

Every staff-facing read goes through a department scope computed from the
caller's principal, so listings, counts and single-request lookups can only
ever return rows from departments the caller is assigned to.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.errors import AuthorizationError, NotFoundError, ValidationError
from registrar.core.logging import logger
from registrar.core.rbac import (
    AdminPrincipal, DepartmentScope, Principal, StaffPrincipal,
    apply_department_scope, can_access_department, department_scope,
)
from registrar.db.tracking import get_tracking_history
from registrar.models.request import DocumentRequest, RequestStatus, TrackingEntry
from registrar.models.requester import Alumni, Student
from registrar.schemas.request import StatusCounts
from registrar.services.status import normalize_status
from registrar.utils.dates import utcnow
from registrar.utils.pagination import PaginatedResponse, PaginationParams, paginate_query

SORTABLE_COLUMNS = {
    "created_at": DocumentRequest.created_at,
    "updated_at": DocumentRequest.updated_at,
    "status": DocumentRequest.status_id,
    "total_amount": DocumentRequest.total_amount,
    "scheduled_pickup": DocumentRequest.scheduled_pickup,
    "id": DocumentRequest.id,
}

_COUNT_FIELDS = {
    RequestStatus.PENDING: "pending",
    RequestStatus.PROCESSING: "processing",
    RequestStatus.READY: "ready_for_pickup",
    RequestStatus.RELEASED: "released",
    RequestStatus.DECLINE: "declined",
}


def _date_range_filters(start: Optional[datetime], end: Optional[datetime]) -> List[Any]:
    filters = []
    if start is not None:
        filters.append(DocumentRequest.created_at >= start)
    if end is not None:
        filters.append(DocumentRequest.created_at < end)
    return filters


class RequestQueryService:
    """Scoped reads over document requests."""

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        principal: Principal,
        pagination: PaginationParams,
        status: Optional[str] = None,
        department_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse[Any]:
        """
        List requests visible to the caller.

        Args:
            db: Database session
            principal: Caller
            pagination: Page, size and sort
            status: Optional status name or id filter
            department_id: Optional narrowing department filter
            search: Optional reference number / request number / requester text

        Returns:
            One page of requests

        Raises:
            AuthorizationError: Staff filtered on a department outside their set
            ValidationError: Unknown status filter
        """
        scope = department_scope(principal, department_id)
        query = apply_department_scope(select(DocumentRequest), DocumentRequest.department_id, scope)

        if status:
            query = query.where(DocumentRequest.status_id == int(normalize_status(status)))

        if search:
            pattern = f"%{search.strip()}%"
            query = (
                query.outerjoin(Student, Student.id == DocumentRequest.student_id)
                .outerjoin(Alumni, Alumni.id == DocumentRequest.alumni_id)
                .where(or_(
                    DocumentRequest.reference_number.ilike(pattern),
                    DocumentRequest.request_no.ilike(pattern),
                    Student.student_number.ilike(pattern),
                    Student.last_name.ilike(pattern),
                    Alumni.email.ilike(pattern),
                    Alumni.last_name.ilike(pattern),
                ))
            )

        page = await paginate_query(db, query, pagination, SORTABLE_COLUMNS)
        logger.debug(f"Listed {len(page.items)} of {page.total} requests for {principal}")
        return page

    @staticmethod
    async def get_request(db: AsyncSession, request_pk: int) -> Optional[DocumentRequest]:
        """Load a request with its lines, history and requester, bypassing stale state."""
        result = await db.execute(
            select(DocumentRequest)
            .where(DocumentRequest.id == request_pk)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_request_for(db: AsyncSession, principal: Principal, request_pk: int) -> DocumentRequest:
        """
        Load one request the caller is allowed to see.

        Staff get the same authorization error whether the request is
        outside their departments or does not exist at all.

        Raises:
            NotFoundError: Admin asked for a missing request
            AuthorizationError: Staff asked for a request outside their scope
        """
        request = await RequestQueryService.get_request(db, request_pk)

        match principal:
            case AdminPrincipal():
                if request is None:
                    raise NotFoundError(f"Request {request_pk} not found")
            case StaffPrincipal(user_id=user_id):
                if request is None or not can_access_department(principal, request.department_id):
                    logger.warning(f"Staff user {user_id} denied access to request {request_pk}")
                    raise AuthorizationError()
            case _:
                raise TypeError(f"Unsupported principal: {principal!r}")
        return request

    @staticmethod
    async def get_history(db: AsyncSession, principal: Principal, request_pk: int) -> List[TrackingEntry]:
        await RequestQueryService.get_request_for(db, principal, request_pk)
        return await get_tracking_history(db, request_pk)

    @staticmethod
    async def find_by_reference(db: AsyncSession, reference: str) -> DocumentRequest:
        """
        Public lookup by reference number, request number or request id.

        Raises:
            ValidationError: Empty reference
            NotFoundError: No matching request
        """
        reference = (reference or "").strip()
        if not reference:
            raise ValidationError.for_field("reference", "Reference number is required")

        result = await db.execute(
            select(DocumentRequest).where(or_(
                DocumentRequest.reference_number == reference,
                DocumentRequest.request_no == reference,
                DocumentRequest.request_id == reference,
            ))
        )
        request = result.scalars().first()
        if request is None:
            raise NotFoundError("Request not found. Please check your reference number.")
        return request

    @staticmethod
    async def count_by_status(
        db: AsyncSession,
        scope: DepartmentScope,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> StatusCounts:
        """Per-status counts within a department scope and optional date range."""
        query = select(DocumentRequest.status_id, func.count(DocumentRequest.id)).where(
            *_date_range_filters(start, end)
        )
        query = apply_department_scope(query, DocumentRequest.department_id, scope)
        query = query.group_by(DocumentRequest.status_id)

        counts = StatusCounts()
        for status_id, count in (await db.execute(query)).all():
            setattr(counts, _COUNT_FIELDS[RequestStatus(status_id)], count)
            counts.total += count
        return counts

    @staticmethod
    async def statistics(
        db: AsyncSession,
        principal: Principal,
        department_id: Optional[int] = None,
    ) -> StatusCounts:
        """Per-status counts of every request visible to the caller."""
        scope = department_scope(principal, department_id)
        return await RequestQueryService.count_by_status(db, scope)

    @staticmethod
    async def dashboard(
        db: AsyncSession,
        principal: Principal,
        department_id: Optional[int] = None,
        recent_limit: int = 10,
    ) -> Dict[str, Any]:
        """
        Dashboard figures for the caller's departments.

        Returns:
            Status counts, the most recent requests and the number released
            since midnight UTC
        """
        scope = department_scope(principal, department_id)
        counts = await RequestQueryService.count_by_status(db, scope)

        recent_query = apply_department_scope(
            select(DocumentRequest), DocumentRequest.department_id, scope
        ).order_by(DocumentRequest.created_at.desc(), DocumentRequest.id.desc()).limit(recent_limit)
        recent = list((await db.execute(recent_query)).scalars().all())

        today_start = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        released_query = apply_department_scope(
            select(func.count(DocumentRequest.id)).where(
                DocumentRequest.status_id == int(RequestStatus.RELEASED),
                DocumentRequest.date_completed >= today_start,
                DocumentRequest.date_completed < today_start + timedelta(days=1),
            ),
            DocumentRequest.department_id,
            scope,
        )
        released_today = (await db.execute(released_query)).scalar() or 0

        return {
            "counts": counts,
            "recent_requests": recent,
            "released_today": released_today,
            "departments": None if scope is None else sorted(scope),
        }
