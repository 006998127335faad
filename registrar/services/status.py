"""
Request status state machine.

PENDING -> PROCESSING -> READY -> RELEASED, with DECLINE reachable from any
open status. Requests only move forward along that chain (skipping ahead is
allowed) or are re-saved in place; RELEASED and DECLINE are final.
"""

from datetime import date
from typing import Any, Dict, Optional, Set, Union

from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.email import EmailService, dispatch
from registrar.core.errors import InvalidTransitionError, ValidationError
from registrar.core.logging import logger
from registrar.core.rbac import AdminPrincipal, Principal, StaffPrincipal
from registrar.core.security import SecurityUtils
from registrar.db.tracking import append_tracking_entry
from registrar.models.request import DocumentRequest, RequestStatus, STATUS_DISPLAY_NAMES
from registrar.utils.dates import parse_iso_date, utcnow

# Valid transitions: each status maps to the set of statuses it can move to.
TRANSITIONS: Dict[RequestStatus, Set[RequestStatus]] = {
    RequestStatus.PENDING: {
        RequestStatus.PENDING,
        RequestStatus.PROCESSING,
        RequestStatus.READY,
        RequestStatus.RELEASED,
        RequestStatus.DECLINE,
    },
    RequestStatus.PROCESSING: {
        RequestStatus.PROCESSING,
        RequestStatus.READY,
        RequestStatus.RELEASED,
        RequestStatus.DECLINE,
    },
    RequestStatus.READY: {
        RequestStatus.READY,
        RequestStatus.RELEASED,
        RequestStatus.DECLINE,
    },
    RequestStatus.RELEASED: set(),
    RequestStatus.DECLINE: set(),
}

_NAME_LOOKUP: Dict[str, RequestStatus] = {
    **{status.name: status for status in RequestStatus},
    **{display: status for status, display in STATUS_DISPLAY_NAMES.items()},
    "READY_FOR_RELEASE": RequestStatus.READY,
}


def normalize_status(target: Union[str, int, None]) -> RequestStatus:
    """
    Map a status name or id to the stored status.

    Names are matched case-insensitively with spaces and hyphens read as
    underscores, in either the stored ("READY", "DECLINE") or the external
    ("READY_FOR_PICKUP", "DECLINED") vocabulary. Numeric strings are ids.

    Raises:
        ValidationError: Unknown name or id
    """
    if isinstance(target, bool) or target is None:
        raise ValidationError.for_field("status", "Status is required")

    if isinstance(target, int) or (isinstance(target, str) and target.strip().isdigit()):
        try:
            return RequestStatus(int(target))
        except ValueError:
            raise ValidationError.for_field("statusId", f"Invalid status id: {target}") from None

    key = str(target).strip().upper().replace(" ", "_").replace("-", "_")
    status = _NAME_LOOKUP.get(key)
    if status is None:
        raise ValidationError.for_field("status", f"Invalid status: {target}")
    return status


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return target in TRANSITIONS[current]


def parse_pickup_date(value: str, today: Optional[date] = None) -> date:
    """
    Validate a pickup date given as ``YYYY-MM-DD``.

    Raises:
        ValidationError: Wrong format or a date before today
    """
    pickup = parse_iso_date(value)
    if pickup is None:
        raise ValidationError.for_field("scheduledPickup", "Invalid date format. Use YYYY-MM-DD")
    if pickup < (today or utcnow().date()):
        raise ValidationError.for_field("scheduledPickup", "Pickup date cannot be in the past")
    return pickup


def _actor_id(actor: Optional[Principal]) -> Optional[int]:
    match actor:
        case AdminPrincipal(user_id=user_id) | StaffPrincipal(user_id=user_id):
            return user_id
        case None:
            return None
        case _:
            raise TypeError(f"Unsupported principal: {actor!r}")


class StatusService:
    """
    Apply status changes and pickup scheduling to stored requests.

    Args:
        notifier: Object with ``send_ready_for_pickup``
    """

    def __init__(self, notifier: Any = EmailService):
        self.notifier = notifier

    async def transition(
        self,
        db: AsyncSession,
        request: DocumentRequest,
        target: Union[str, int],
        actor: Optional[Principal],
        notes: Optional[str] = None,
        scheduled_pickup: Optional[str] = None,
    ) -> DocumentRequest:
        """
        Move a request to a new status.

        Args:
            db: Database session
            request: Request already checked against the actor's scope
            target: Status name or id
            actor: Acting principal
            notes: Optional free-text note, stored on the request and the entry
            scheduled_pickup: Optional ``YYYY-MM-DD`` pickup date set alongside

        Returns:
            The updated request

        Raises:
            ValidationError: Unknown target status or bad pickup date
            InvalidTransitionError: The move is not allowed from the current status
        """
        new_status = normalize_status(target)
        old_status = request.status

        if not can_transition(old_status, new_status):
            logger.warning(
                f"Rejected transition {old_status.name} -> {new_status.name} "
                f"for request {request.request_id}"
            )
            raise InvalidTransitionError(
                f"Cannot change status from {old_status.display_name} to {new_status.display_name}"
            )

        pickup = parse_pickup_date(scheduled_pickup) if scheduled_pickup else None
        notes = SecurityUtils.sanitize_input(notes)
        now = utcnow()
        actor_id = _actor_id(actor)

        request.status_id = int(new_status)
        request.updated_at = now
        if pickup is not None:
            request.scheduled_pickup = pickup
        if notes:
            request.admin_notes = notes
        if new_status == RequestStatus.RELEASED:
            request.date_completed = now
        match actor:
            case StaffPrincipal(user_id=staff_id):
                request.processed_by = staff_id
            case AdminPrincipal() | None:
                pass

        if old_status == new_status:
            message = f"Status re-saved as {new_status.display_name}"
        else:
            message = f"Status changed from {old_status.display_name} to {new_status.display_name}"
        if notes:
            message = f"{message}: {notes}"
        append_tracking_entry(db, request, new_status, message, changed_by=actor_id)

        await db.commit()
        logger.info(
            f"Request {request.request_id}: {old_status.name} -> {new_status.name} by user {actor_id}"
        )

        if new_status == RequestStatus.READY and old_status != RequestStatus.READY:
            await self.notify_ready(request)
        return request

    async def schedule_pickup(
        self,
        db: AsyncSession,
        request: DocumentRequest,
        scheduled_pickup: str,
        actor: Optional[Principal],
    ) -> DocumentRequest:
        """
        Set the pickup date without touching the status.

        Raises:
            ValidationError: Bad date
            InvalidTransitionError: The request is already final
        """
        if request.status.is_terminal:
            raise InvalidTransitionError(
                f"Cannot schedule pickup for a {request.status.display_name} request"
            )
        pickup = parse_pickup_date(scheduled_pickup)

        request.scheduled_pickup = pickup
        request.updated_at = utcnow()
        append_tracking_entry(
            db,
            request,
            request.status,
            f"Pickup scheduled for {pickup.isoformat()}",
            changed_by=_actor_id(actor),
        )
        await db.commit()
        logger.info(f"Request {request.request_id}: pickup scheduled for {pickup.isoformat()}")
        return request

    async def notify_ready(self, request: DocumentRequest) -> bool:
        return await dispatch(
            self.notifier.send_ready_for_pickup,
            request.requester_email,
            request.requester_name or "Requester",
            request.reference_number,
            request.document_names,
            request.scheduled_pickup,
        )
