"""
Document request API endpoints.

Submission and tracking are public. Everything else requires a staff or
admin token and is limited to the caller's departments.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.deps import (
    get_pagination_params, get_status_service, get_submission_service,
)
from registrar.core.errors import ValidationError
from registrar.core.logging import logger
from registrar.core.rbac import Principal, get_principal
from registrar.db.session import get_db
from registrar.schemas.request import (
    AlumniSubmission, RequestDetail, RequestRead, ScheduleUpdate, StatusCounts, StatusUpdate,
    StudentSubmission, SubmissionResponse, TrackingEntryRead, TrackingView,
)
from registrar.services.request_query import RequestQueryService
from registrar.services.status import StatusService, normalize_status
from registrar.services.submission import SubmissionService
from registrar.utils.pagination import PaginatedResponse, PaginationParams

router = APIRouter()


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post("/student", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_student_request(
    payload: StudentSubmission,
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    """
    Submit a document request as an enrolled student.

    Returns:
        Generated identifiers, total amount and initial status
    """
    logger.info(f"Student submission received from {_client_ip(request)}")
    return await service.submit_student(db, payload)


@router.post("/alumni", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_alumni_request(
    payload: AlumniSubmission,
    request: Request,
    db: AsyncSession = Depends(get_db),
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    """
    Submit a document request as a graduate.

    Returns:
        Generated identifiers, total amount and initial status
    """
    logger.info(f"Alumni submission received from {_client_ip(request)}")
    return await service.submit_alumni(db, payload)


@router.get("/track/{reference}", response_model=TrackingView)
async def track_request(
    reference: str = Path(..., min_length=1, max_length=60),
    db: AsyncSession = Depends(get_db),
) -> TrackingView:
    """
    Public tracking by reference number or request number.
    """
    found = await RequestQueryService.find_by_reference(db, reference)
    return TrackingView.from_request(found)


@router.get("", response_model=PaginatedResponse[RequestRead])
async def list_requests(
    status_filter: Optional[str] = Query(None, alias="status", description="Status name or id"),
    department_id: Optional[int] = Query(None, alias="departmentId"),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> PaginatedResponse[RequestRead]:
    """
    List requests in the caller's departments.
    """
    page = await RequestQueryService.list_requests(
        db, principal, pagination, status=status_filter, department_id=department_id, search=search
    )
    return PaginatedResponse[RequestRead](
        **page.model_dump(exclude={"items"}),
        items=[RequestRead.from_request(item) for item in page.items],
    )


@router.get("/stats", response_model=StatusCounts)
async def request_statistics(
    department_id: Optional[int] = Query(None, alias="departmentId"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> StatusCounts:
    """Per-status request counts for the caller's departments."""
    return await RequestQueryService.statistics(db, principal, department_id)


@router.get("/{request_pk}", response_model=RequestDetail)
async def get_request(
    request_pk: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> RequestDetail:
    """Request detail with documents and tracking history."""
    found = await RequestQueryService.get_request_for(db, principal, request_pk)
    return RequestDetail.from_request(found)


@router.get("/{request_pk}/history", response_model=list[TrackingEntryRead])
async def get_request_history(
    request_pk: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> list[TrackingEntryRead]:
    """Tracking history, oldest first."""
    entries = await RequestQueryService.get_history(db, principal, request_pk)
    return [TrackingEntryRead.from_entry(entry) for entry in entries]


@router.patch("/{request_pk}/status", response_model=RequestDetail)
async def update_request_status(
    update: StatusUpdate,
    request_pk: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
    service: StatusService = Depends(get_status_service),
) -> RequestDetail:
    """
    Change a request's status by name or id, optionally scheduling pickup.
    """
    target = update.status if update.status is not None else update.status_id
    if target is None:
        raise ValidationError.for_field("status", "Status or statusId is required")
    if update.status is not None and update.status_id is not None:
        if normalize_status(update.status) != normalize_status(update.status_id):
            raise ValidationError.for_field("statusId", "Status and statusId do not match")

    found = await RequestQueryService.get_request_for(db, principal, request_pk)
    await service.transition(
        db, found, target, principal, notes=update.notes, scheduled_pickup=update.scheduled_pickup
    )
    refreshed = await RequestQueryService.get_request(db, request_pk)
    return RequestDetail.from_request(refreshed)


@router.patch("/{request_pk}/schedule", response_model=RequestDetail)
async def update_request_schedule(
    update: ScheduleUpdate,
    request_pk: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_principal),
    service: StatusService = Depends(get_status_service),
) -> RequestDetail:
    """Set the pickup date of a request."""
    found = await RequestQueryService.get_request_for(db, principal, request_pk)
    await service.schedule_pickup(db, found, update.scheduled_pickup, principal)
    refreshed = await RequestQueryService.get_request(db, request_pk)
    return RequestDetail.from_request(refreshed)
