"""
Service layer for document request submission.

Sequences one submission end to end: payload checks, requester upsert,
protection checks, course and department resolution, staff pre-assignment,
purpose resolution, pricing, reference number handling and the single
commit that stores the request, its lines and its first tracking entry.
"""

import re
import secrets
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.config import settings
from registrar.core.email import EmailService, dispatch
from registrar.core.errors import (
    ConflictError, RateLimitError, ServiceError, UnexpectedError, ValidationError,
)
from registrar.core.logging import logger
from registrar.core.security import SecurityUtils
from registrar.db.tracking import append_tracking_entry
from registrar.models.department import staff_departments
from registrar.models.reference import DocumentType
from registrar.models.request import (
    DocumentRequest, RequestDocumentLine, RequestStatus, RequesterKind,
)
from registrar.models.user import User
from registrar.schemas.request import (
    AlumniSubmission, DocumentSelection, StudentSubmission, SubmissionResponse, SubmittedRequest,
)
from registrar.services.protection import RequestProtection
from registrar.services.reference_data import ReferenceDataService
from registrar.services.routing import DepartmentRouter

SUBMITTED_NOTE = "Request submitted and pending review"
MAX_DOCUMENT_QUANTITY = 100
CENT = Decimal("0.01")
_ORDINARY_FIELDS = (
    "first_name", "middle_name", "last_name", "email", "contact_no", "course",
    "educational_level", "department_hint", "purpose", "other_purpose",
)


def _timestamp_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.randbelow(1000):03d}"


def generate_request_id() -> str:
    return _timestamp_id("REQ")


def generate_request_no() -> str:
    return _timestamp_id("RN")


def generate_reference_number() -> str:
    """Mint ``<prefix>-<6 digits>-<4 digits>`` from the clock and a random suffix."""
    prefix = settings.requests.reference_number_prefix
    return f"{prefix}-{int(time.time() * 1000) % 1_000_000:06d}-{secrets.randbelow(10_000):04d}"


def is_valid_reference_number(value: Optional[str]) -> bool:
    return bool(value) and re.fullmatch(settings.requests.reference_number_pattern, value) is not None


@dataclass
class PricedLine:
    document_type: DocumentType
    quantity: int
    unit_price: Decimal
    school_year: Optional[str]
    semester: Optional[str]

    @property
    def total_price(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENT)


class SubmissionService:
    """
    Accept document requests from students and alumni.

    Args:
        router: Department router built from the process routing config
        protection: Protection checks, defaults to configured limits
        notifier: Object with ``send_submission_summary``
    """

    def __init__(
        self,
        router: DepartmentRouter,
        protection: Optional[RequestProtection] = None,
        notifier: Any = EmailService,
    ):
        self.router = router
        self.protection = protection or RequestProtection()
        self.notifier = notifier

    async def submit_student(self, db: AsyncSession, payload: StudentSubmission) -> SubmissionResponse:
        """
        Submit a request on behalf of an enrolled student.

        Args:
            db: Database session
            payload: Student request form

        Returns:
            Identifiers, total and initial status of the stored request

        Raises:
            ValidationError: Missing fields, no documents or unknown document type
            RateLimitError: A protection check rejected the submission
            ConflictError: The reference number is already taken
            UnexpectedError: Any other persistence failure
        """
        payload = self._sanitize(payload)
        self._validate_student(payload)
        logger.info(f"Student document request from {payload.student_number}")

        try:
            student = await ReferenceDataService.upsert_student(
                db,
                student_number=payload.student_number,
                first_name=payload.first_name,
                last_name=payload.last_name,
                middle_name=payload.middle_name,
                email=payload.email,
                contact_no=payload.contact_no,
            )
            request, lines = await self._build_request(db, RequesterKind.STUDENT, student, payload)
            school_year, semester = _first_term(payload.documents)
            request.school_year = school_year
            request.semester = semester
            await self._commit(db, request)
        except ServiceError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.opt(exception=e).error(f"Student submission failed for {payload.student_number}: {e}")
            raise UnexpectedError() from e

        await self._notify(request, student, lines)
        return _response(request)

    async def submit_alumni(self, db: AsyncSession, payload: AlumniSubmission) -> SubmissionResponse:
        """
        Submit a request on behalf of a graduate.

        Args:
            db: Database session
            payload: Alumni request form

        Returns:
            Identifiers, total and initial status of the stored request

        Raises:
            ValidationError: Missing fields, no documents or unknown document type
            RateLimitError: A protection check rejected the submission
            ConflictError: The reference number is already taken
            UnexpectedError: Any other persistence failure
        """
        payload = self._sanitize(payload)
        self._validate_alumni(payload)
        logger.info(f"Alumni document request from {payload.email}")

        try:
            alumni = await ReferenceDataService.upsert_alumni(
                db,
                email=payload.email,
                first_name=payload.first_name,
                last_name=payload.last_name,
                middle_name=payload.middle_name,
                contact_no=payload.contact_no,
                year_graduated=payload.year_graduated,
            )
            request, lines = await self._build_request(db, RequesterKind.ALUMNI, alumni, payload)
            await self._commit(db, request)
        except ServiceError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.opt(exception=e).error(f"Alumni submission failed for {payload.email}: {e}")
            raise UnexpectedError() from e

        await self._notify(request, alumni, lines)
        return _response(request)

    async def _build_request(
        self,
        db: AsyncSession,
        kind: RequesterKind,
        requester,
        payload,
    ) -> Tuple[DocumentRequest, List[PricedLine]]:
        selections = _selected_documents(payload.documents)

        existing_purpose = await ReferenceDataService.find_purpose(db, payload.purpose)
        verdict = await self.protection.check(
            db,
            kind,
            requester.id,
            existing_purpose.id if existing_purpose is not None else None,
            [selection.document_type_name for selection in selections],
        )
        if not verdict.passed:
            raise RateLimitError(verdict.message)

        course_department_id = await self.router.derive_course_department(
            db, payload.educational_level, payload.course
        )
        course = await ReferenceDataService.ensure_course(
            db, payload.course, payload.educational_level, course_department_id
        )

        decision = await self.router.resolve(
            db,
            kind,
            educational_level=payload.educational_level,
            course_id=course.id,
            program=payload.course,
            department_hint=payload.department_hint,
        )
        if decision.resolved and requester.department_id is None:
            requester.department_id = decision.department_id

        processor_id = await self.find_staff_for_department(db, decision.department_id)

        purpose = await ReferenceDataService.ensure_purpose(db, payload.purpose, payload.other_purpose)

        lines = await self.price_documents(db, selections)
        total = sum((line.total_price for line in lines), Decimal("0.00"))

        reference_number = await self._reference_number(db, payload.reference_number)

        request = DocumentRequest(
            request_id=generate_request_id(),
            request_no=generate_request_no(),
            reference_number=reference_number,
            requester_kind=kind.value,
            student_id=requester.id if kind == RequesterKind.STUDENT else None,
            alumni_id=requester.id if kind == RequesterKind.ALUMNI else None,
            course_id=course.id,
            purpose_id=purpose.id,
            department_id=decision.department_id,
            status_id=int(RequestStatus.PENDING),
            pickup_status_id=1,
            processed_by=processor_id,
            total_amount=total,
        )
        for line in lines:
            request.lines.append(
                RequestDocumentLine(
                    document_type_id=line.document_type.id,
                    document_type=line.document_type,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line.total_price,
                    school_year=line.school_year,
                    semester=line.semester,
                )
            )
        db.add(request)
        append_tracking_entry(db, request, RequestStatus.PENDING, SUBMITTED_NOTE)
        return request, lines

    async def _commit(self, db: AsyncSession, request: DocumentRequest) -> None:
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"Duplicate request rejected ({request.reference_number}): {e.orig}")
            raise ConflictError("A request with this information already exists") from e
        logger.info(
            f"Stored request {request.request_id} ({request.reference_number}) "
            f"for department {request.department_id}, total {request.total_amount}"
        )

    async def _notify(self, request: DocumentRequest, requester, lines: Sequence[PricedLine]) -> None:
        await dispatch(
            self.notifier.send_submission_summary,
            requester.email,
            requester.full_name,
            request.reference_number,
            [(line.document_type.name, line.quantity) for line in lines],
            float(request.total_amount),
        )

    @staticmethod
    async def find_staff_for_department(db: AsyncSession, department_id: Optional[int]) -> Optional[int]:
        """First active staff member (lowest id) assigned to the department."""
        if department_id is None:
            return None
        result = await db.execute(
            select(User.id)
            .join(staff_departments, staff_departments.c.user_id == User.id)
            .where(
                staff_departments.c.department_id == department_id,
                User.role == "staff",
                User.is_active.is_(True),
            )
            .order_by(User.id.asc())
            .limit(1)
        )
        staff_id = result.scalar()
        if staff_id is None:
            logger.info(f"No staff assigned to department {department_id}; request left unassigned")
        return staff_id

    @staticmethod
    async def price_documents(db: AsyncSession, selections: Sequence[DocumentSelection]) -> List[PricedLine]:
        """
        Snapshot current prices for the selected documents.

        Raises:
            ValidationError: A document name is not a registered active type
        """
        names = {selection.document_type_name for selection in selections}
        result = await db.execute(
            select(DocumentType).where(DocumentType.name.in_(names), DocumentType.is_active.is_(True))
        )
        by_name = {doc_type.name: doc_type for doc_type in result.scalars().all()}

        lines = []
        for selection in selections:
            doc_type = by_name.get(selection.document_type_name)
            if doc_type is None:
                raise ValidationError.for_field(
                    "documents", f"Document type not found: {selection.document_type_name}"
                )
            lines.append(
                PricedLine(
                    document_type=doc_type,
                    quantity=selection.quantity,
                    unit_price=Decimal(doc_type.base_price).quantize(CENT),
                    school_year=selection.school_year,
                    semester=selection.semester,
                )
            )
        return lines

    @staticmethod
    async def _reference_number(db: AsyncSession, proposed: Optional[str]) -> str:
        if is_valid_reference_number(proposed):
            return proposed
        if proposed:
            logger.info(f"Ignoring malformed client reference number {proposed!r}")
        for _ in range(5):
            candidate = generate_reference_number()
            taken = await db.execute(
                select(DocumentRequest.id).where(DocumentRequest.reference_number == candidate)
            )
            if taken.scalar() is None:
                return candidate
        return generate_reference_number()

    @staticmethod
    def _sanitize(payload):
        updates = {
            name: SecurityUtils.sanitize_input(getattr(payload, name))
            for name in _ORDINARY_FIELDS
        }
        if isinstance(payload, StudentSubmission):
            updates["student_number"] = SecurityUtils.sanitize_input(payload.student_number)
        else:
            updates["year_graduated"] = SecurityUtils.sanitize_input(payload.year_graduated)
        if updates["email"]:
            updates["email"] = updates["email"].lower()
        updates["reference_number"] = (payload.reference_number or "").strip() or None
        updates["documents"] = [
            selection.model_copy(update={
                "document_type_name": (selection.document_type_name or "").strip() or None,
                "school_year": SecurityUtils.sanitize_input(selection.school_year),
                "semester": SecurityUtils.sanitize_input(selection.semester),
            })
            for selection in payload.documents
        ]
        return payload.model_copy(update=updates)

    @staticmethod
    def _validate_student(payload: StudentSubmission) -> None:
        errors = []
        if not payload.student_number:
            errors.append({"param": "studentNumber", "msg": "Student number is required"})
        if not payload.email:
            errors.append({"param": "email", "msg": "Email is required"})
        errors.extend(_common_errors(payload))
        if errors:
            raise ValidationError(errors=errors)

    @staticmethod
    def _validate_alumni(payload: AlumniSubmission) -> None:
        errors = []
        if not payload.email:
            errors.append({"param": "email", "msg": "SPC email is required"})
        errors.extend(_common_errors(payload))
        if errors:
            raise ValidationError(errors=errors)


def _common_errors(payload) -> List[dict]:
    errors = []
    if not payload.first_name:
        errors.append({"param": "firstName", "msg": "First name is required"})
    if not payload.last_name:
        errors.append({"param": "lastName", "msg": "Last name is required"})
    if payload.email and "@" not in payload.email:
        errors.append({"param": "email", "msg": "A valid email is required"})
    selections = payload.documents
    if not _selected_documents(selections):
        errors.append({"param": "documents", "msg": "At least one document must be requested"})
    for selection in selections:
        if selection.selected and selection.quantity > 0 and not selection.document_type_name:
            errors.append({"param": "documents", "msg": "Document name is required"})
            break
    if any(selection.selected and selection.quantity > MAX_DOCUMENT_QUANTITY for selection in selections):
        errors.append({"param": "documents", "msg": f"Quantity cannot exceed {MAX_DOCUMENT_QUANTITY} copies"})
    return errors


def _selected_documents(selections: Sequence[DocumentSelection]) -> List[DocumentSelection]:
    return [
        selection for selection in selections
        if selection.selected and selection.quantity > 0 and selection.document_type_name
    ]


def _first_term(selections: Sequence[DocumentSelection]) -> Tuple[Optional[str], Optional[str]]:
    for selection in _selected_documents(selections):
        if selection.school_year or selection.semester:
            return selection.school_year, selection.semester
    return None, None


def _response(request: DocumentRequest) -> SubmissionResponse:
    return SubmissionResponse(
        request=SubmittedRequest(
            request_id=request.request_id,
            request_no=request.request_no,
            reference_number=request.reference_number,
            total_amount=float(request.total_amount),
            status=RequestStatus.PENDING.display_name,
            department_id=request.department_id,
        )
    )
