"""
Request protection checks.

Three checks run, in order, before a new request is written: duplicate
pending request, submission cooldown and the pending-request cap. The first
failing check decides the rejection message.

The checks read and then the caller writes without a lock, so two
near-simultaneous submissions by one requester can both pass. That gap is
accepted; the checks guard against repeated clicking, not against a
determined client.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.config import settings
from registrar.core.logging import logger
from registrar.models.reference import DocumentType
from registrar.models.request import (
    DocumentRequest, RequestDocumentLine, RequestStatus, RequesterKind, OPEN_STATUSES,
)
from registrar.utils.dates import as_utc, utcnow

DUPLICATE_MESSAGE = "You already have a pending request for this document and purpose."


@dataclass(frozen=True)
class ProtectionResult:
    """Outcome of the protection checks; ``message`` is set on rejection."""

    check: Optional[str] = None
    message: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.message is None


PASSED = ProtectionResult()


def _requester_filter(kind: RequesterKind, requester_id: int):
    if kind == RequesterKind.STUDENT:
        return DocumentRequest.student_id == requester_id
    return DocumentRequest.alumni_id == requester_id


class RequestProtection:
    """
    Protection checks for one requester.

    Args:
        cooldown_minutes: Minimum gap between two submissions
        max_pending: Number of PENDING requests that blocks new ones
    """

    def __init__(
        self,
        cooldown_minutes: Optional[int] = None,
        max_pending: Optional[int] = None,
    ):
        request_settings = settings.requests
        self.cooldown = timedelta(
            minutes=request_settings.cooldown_minutes if cooldown_minutes is None else cooldown_minutes
        )
        self.max_pending = request_settings.max_pending if max_pending is None else max_pending

    async def check(
        self,
        db: AsyncSession,
        kind: RequesterKind,
        requester_id: int,
        purpose_id: Optional[int],
        document_names: Iterable[str],
        now: Optional[datetime] = None,
    ) -> ProtectionResult:
        """
        Run every check in order and stop at the first rejection.

        Args:
            db: Database session
            kind: Requester kind
            requester_id: Student or alumni id
            purpose_id: Existing purpose id, None when the purpose is new
            document_names: Names of the selected document types
            now: Reference time, defaults to the current time

        Returns:
            ``PASSED`` or the first rejection
        """
        now = now or utcnow()

        result = await self.check_duplicate_pending(db, kind, requester_id, purpose_id, document_names)
        if result.passed:
            result = await self.check_cooldown(db, kind, requester_id, now)
        if result.passed:
            result = await self.check_max_pending(db, kind, requester_id)

        if result.passed:
            logger.debug(f"Protection checks passed for {kind.value} {requester_id}")
        else:
            logger.warning(
                f"Protection check '{result.check}' rejected {kind.value} {requester_id}: {result.message}"
            )
        return result

    async def check_duplicate_pending(
        self,
        db: AsyncSession,
        kind: RequesterKind,
        requester_id: int,
        purpose_id: Optional[int],
        document_names: Iterable[str],
    ) -> ProtectionResult:
        """Reject an open request for the same purpose sharing a document type."""
        names = list(document_names)
        if purpose_id is None or not names:
            return PASSED

        query = (
            select(func.count(DocumentRequest.id))
            .join(RequestDocumentLine, RequestDocumentLine.request_id == DocumentRequest.id)
            .join(DocumentType, DocumentType.id == RequestDocumentLine.document_type_id)
            .where(
                _requester_filter(kind, requester_id),
                DocumentRequest.purpose_id == purpose_id,
                DocumentRequest.status_id.in_([int(s) for s in OPEN_STATUSES]),
                DocumentType.name.in_(names),
            )
        )
        duplicates = (await db.execute(query)).scalar() or 0
        if duplicates:
            return ProtectionResult("duplicate_pending", DUPLICATE_MESSAGE)
        return PASSED

    async def check_cooldown(
        self,
        db: AsyncSession,
        kind: RequesterKind,
        requester_id: int,
        now: datetime,
    ) -> ProtectionResult:
        """Reject when the latest submission is younger than the cooldown."""
        if not self.cooldown:
            return PASSED

        query = select(func.max(DocumentRequest.created_at)).where(_requester_filter(kind, requester_id))
        latest = as_utc((await db.execute(query)).scalar())
        if latest is None:
            return PASSED

        remaining = latest + self.cooldown - as_utc(now)
        if remaining.total_seconds() <= 0:
            return PASSED

        minutes = max(1, math.ceil(remaining.total_seconds() / 60))
        unit = "minute" if minutes == 1 else "minutes"
        return ProtectionResult(
            "cooldown",
            f"Please wait {minutes} {unit} before submitting another request.",
        )

    async def check_max_pending(
        self,
        db: AsyncSession,
        kind: RequesterKind,
        requester_id: int,
    ) -> ProtectionResult:
        """Reject when the requester already has the maximum PENDING requests."""
        query = select(func.count(DocumentRequest.id)).where(
            _requester_filter(kind, requester_id),
            DocumentRequest.status_id == int(RequestStatus.PENDING),
        )
        pending = (await db.execute(query)).scalar() or 0
        if pending >= self.max_pending:
            return ProtectionResult(
                "max_pending",
                f"You already have {self.max_pending} pending requests. "
                f"Please wait for approval before submitting more.",
            )
        return PASSED
