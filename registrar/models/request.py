"""
Document request models.

A ``DocumentRequest`` is the aggregate root: it owns its line items and its
append-only tracking history. Status values live in a small seeded lookup
table mirrored by the ``RequestStatus`` enum.
"""
import enum
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey, CheckConstraint,
)
from sqlalchemy.orm import relationship
from registrar.models.base import Base
from registrar.utils.dates import utcnow


class RequestStatus(enum.IntEnum):
    """Stored request statuses. Values are the lookup table ids."""

    PENDING = 1
    PROCESSING = 2
    READY = 3
    RELEASED = 4
    DECLINE = 5

    @property
    def display_name(self) -> str:
        """Name used in API responses and emails."""
        return STATUS_DISPLAY_NAMES[self]

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.RELEASED, RequestStatus.DECLINE)


STATUS_DISPLAY_NAMES = {
    RequestStatus.PENDING: "PENDING",
    RequestStatus.PROCESSING: "PROCESSING",
    RequestStatus.READY: "READY_FOR_PICKUP",
    RequestStatus.RELEASED: "RELEASED",
    RequestStatus.DECLINE: "DECLINED",
}

OPEN_STATUSES = (RequestStatus.PENDING, RequestStatus.PROCESSING, RequestStatus.READY)


class RequesterKind(str, enum.Enum):
    STUDENT = "student"
    ALUMNI = "alumni"


class StatusLookup(Base):
    """Seeded lookup table of request statuses."""

    __tablename__ = "request_statuses"

    id = Column(Integer, primary_key=True, autoincrement=False)
    status_name = Column(String(30), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<StatusLookup(id={self.id}, status_name='{self.status_name}')>"


class DocumentRequest(Base):
    """
    Document request submitted by a student or an alumnus.

    Exactly one of ``student_id`` / ``alumni_id`` is set, as named by
    ``requester_kind``. ``department_id`` is denormalized from routing so
    staff listings filter on a single column.
    """

    __tablename__ = "document_requests"
    __table_args__ = (
        CheckConstraint(
            "(student_id IS NOT NULL AND alumni_id IS NULL) OR (student_id IS NULL AND alumni_id IS NOT NULL)",
            name="ck_document_requests_one_requester",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(40), nullable=False, unique=True, index=True)
    request_no = Column(String(40), nullable=False, unique=True, index=True)
    reference_number = Column(String(40), nullable=False, unique=True, index=True)

    requester_kind = Column(String(10), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=True, index=True)
    alumni_id = Column(Integer, ForeignKey("alumni.id", ondelete="CASCADE"), nullable=True, index=True)

    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    purpose_id = Column(Integer, ForeignKey("purposes.id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    status_id = Column(Integer, ForeignKey("request_statuses.id"), nullable=False, default=RequestStatus.PENDING.value, index=True)
    pickup_status_id = Column(Integer, nullable=False, default=1)
    processed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    scheduled_pickup = Column(Date, nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    school_year = Column(String(20), nullable=True)
    semester = Column(String(20), nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    date_completed = Column(DateTime(timezone=True), nullable=True)

    student = relationship("Student", lazy="selectin")
    alumni = relationship("Alumni", lazy="selectin")
    course = relationship("Course", lazy="selectin")
    purpose = relationship("Purpose", lazy="selectin")
    department = relationship("Department", lazy="selectin")
    processor = relationship("User", lazy="selectin")
    lines = relationship(
        "RequestDocumentLine",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestDocumentLine.id",
        lazy="selectin",
    )
    tracking = relationship(
        "TrackingEntry",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by=lambda: [TrackingEntry.created_at, TrackingEntry.id],
        lazy="selectin",
    )

    @property
    def status(self) -> RequestStatus:
        return RequestStatus(self.status_id)

    @property
    def requester(self):
        """The Student or Alumni row that submitted the request."""
        return self.student if self.requester_kind == RequesterKind.STUDENT.value else self.alumni

    @property
    def requester_name(self) -> Optional[str]:
        requester = self.requester
        return requester.full_name if requester is not None else None

    @property
    def requester_email(self) -> Optional[str]:
        requester = self.requester
        return requester.email if requester is not None else None

    @property
    def document_names(self) -> list[str]:
        """Consolidated, de-duplicated list of requested document names."""
        names: list[str] = []
        for line in self.lines:
            name = line.document_type.name if line.document_type is not None else None
            if name and name not in names:
                names.append(name)
        return names

    def __repr__(self) -> str:
        return (
            f"<DocumentRequest(id={self.id}, reference='{self.reference_number}', "
            f"status={self.status_id})>"
        )


class RequestDocumentLine(Base):
    """One requested document type on a request, with a price snapshot."""

    __tablename__ = "request_documents"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_request_documents_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("document_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type_id = Column(Integer, ForeignKey("document_types.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    school_year = Column(String(20), nullable=True)
    semester = Column(String(20), nullable=True)

    request = relationship("DocumentRequest", back_populates="lines")
    document_type = relationship("DocumentType", lazy="selectin")

    def __repr__(self) -> str:
        return f"<RequestDocumentLine(request_id={self.request_id}, type={self.document_type_id}, qty={self.quantity})>"


class TrackingEntry(Base):
    """
    Append-only history row, written on submission and on every status or
    schedule change. Never updated or deleted by the application.
    """

    __tablename__ = "request_tracking"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("document_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    status_id = Column(Integer, ForeignKey("request_statuses.id"), nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    request = relationship("DocumentRequest", back_populates="tracking")
    actor = relationship("User", lazy="selectin")

    @property
    def status(self) -> RequestStatus:
        return RequestStatus(self.status_id)

    def __repr__(self) -> str:
        return f"<TrackingEntry(request_id={self.request_id}, status={self.status_id})>"
