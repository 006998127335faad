"""
Request tracking history.

Tracking entries are append-only: this module only ever adds rows or reads
them back in chronological order.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.models.request import DocumentRequest, RequestStatus, TrackingEntry


def append_tracking_entry(
    db: AsyncSession,
    request: DocumentRequest,
    status: RequestStatus,
    notes: str,
    changed_by: Optional[int] = None,
) -> TrackingEntry:
    """
    Stage a tracking entry for a request.

    The entry joins the caller's transaction; nothing is committed here.

    Args:
        db: Database session
        request: Request the entry belongs to
        status: Status recorded on the entry
        notes: Human-readable description of the change
        changed_by: Acting user id, None when the requester acted

    Returns:
        The pending tracking entry
    """
    entry = TrackingEntry(status_id=int(status), notes=notes, changed_by=changed_by)
    request.tracking.append(entry)
    db.add(entry)
    logger.debug(
        f"Tracking entry staged for request {request.request_id}: "
        f"{status.display_name} by {changed_by or 'requester'}"
    )
    return entry


async def get_tracking_history(db: AsyncSession, request_pk: int) -> List[TrackingEntry]:
    """Return a request's tracking entries, oldest first."""
    result = await db.execute(
        select(TrackingEntry)
        .where(TrackingEntry.request_id == request_pk)
        .order_by(TrackingEntry.created_at.asc(), TrackingEntry.id.asc())
    )
    return list(result.scalars().all())
