"""
Pydantic schemas for document requests.

Submission payloads use the camelCase field names the request forms send;
legacy field names (``documentName``, ``checked``, ``year``,
``collegeDepartment``) are accepted as aliases. Incoming fields are
deliberately permissive: required-field rules live in the submission
service so they produce per-field messages. Responses are serialized with
the same camelCase names.
"""

from typing import List, Optional
from datetime import date, datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from registrar.models.request import DocumentRequest, RequestStatus, TrackingEntry


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentSelection(CamelModel):
    """One document card on the request form."""

    document_type_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("documentTypeName", "documentName", "document_type_name")
    )
    quantity: int = 1
    selected: bool = Field(True, validation_alias=AliasChoices("selected", "checked"))
    school_year: Optional[str] = Field(None, validation_alias=AliasChoices("schoolYear", "year", "school_year"))
    semester: Optional[str] = None


class SubmissionBase(CamelModel):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    contact_no: Optional[str] = None
    course: Optional[str] = None
    educational_level: Optional[str] = None
    department_hint: Optional[str] = Field(
        None, validation_alias=AliasChoices("departmentHint", "collegeDepartment", "department_hint")
    )
    purpose: Optional[str] = None
    other_purpose: Optional[str] = None
    documents: List[DocumentSelection] = Field(default_factory=list)
    reference_number: Optional[str] = None


class StudentSubmission(SubmissionBase):
    """Request form submitted by an enrolled student."""

    student_number: Optional[str] = None


class AlumniSubmission(SubmissionBase):
    """Request form submitted by a graduate."""

    year_graduated: Optional[str] = None


class SubmittedRequest(CamelModel):
    request_id: str
    request_no: str
    reference_number: str
    total_amount: float
    status: str
    department_id: Optional[int] = None


class SubmissionResponse(CamelModel):
    success: bool = True
    message: str = "Document request submitted successfully"
    request: SubmittedRequest


class StatusUpdate(CamelModel):
    """Staff status change. Either ``status`` or ``status_id`` is required."""

    status: Optional[str] = None
    status_id: Optional[int] = None
    scheduled_pickup: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)


class ScheduleUpdate(CamelModel):
    scheduled_pickup: str


class TrackingEntryRead(CamelModel):
    status: str
    actor: Optional[str] = None
    note: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: TrackingEntry) -> "TrackingEntryRead":
        return cls(
            status=RequestStatus(entry.status_id).display_name,
            actor=entry.actor.full_name if entry.actor is not None else None,
            note=entry.notes,
            timestamp=entry.created_at,
        )


class PublicTrackingEntry(CamelModel):
    """History step shown to requesters: no staff names or notes."""

    status: str
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: TrackingEntry) -> "PublicTrackingEntry":
        return cls(status=RequestStatus(entry.status_id).display_name, timestamp=entry.created_at)


class RequestLineRead(CamelModel):
    document_type: str
    quantity: int
    unit_price: float
    total_price: float


class RequestRead(CamelModel):
    """Request row as shown to staff, with the external status name."""

    id: int
    request_id: str
    request_no: str
    reference_number: str
    requester_kind: str
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    course: Optional[str] = None
    educational_level: Optional[str] = None
    purpose: Optional[str] = None
    department_id: Optional[int] = None
    department: Optional[str] = None
    status: str
    status_id: int
    processed_by: Optional[int] = None
    scheduled_pickup: Optional[date] = None
    total_amount: float
    school_year: Optional[str] = None
    semester: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    date_completed: Optional[datetime] = None

    @classmethod
    def from_request(cls, request: DocumentRequest) -> "RequestRead":
        return cls(**_request_fields(request))


class RequestDetail(RequestRead):
    documents: List[RequestLineRead] = Field(default_factory=list)
    history: List[TrackingEntryRead] = Field(default_factory=list)

    @classmethod
    def from_request(cls, request: DocumentRequest) -> "RequestDetail":
        return cls(
            **_request_fields(request),
            documents=[
                RequestLineRead(
                    document_type=line.document_type.name,
                    quantity=line.quantity,
                    unit_price=float(line.unit_price),
                    total_price=float(line.total_price),
                )
                for line in request.lines
            ],
            history=[TrackingEntryRead.from_entry(entry) for entry in request.tracking],
        )


class TrackingView(CamelModel):
    """Public view of a request looked up by reference number."""

    reference_number: str
    request_no: str
    status: str
    requester_name: Optional[str] = None
    documents: List[str]
    scheduled_pickup: Optional[date] = None
    submitted_at: datetime
    date_completed: Optional[datetime] = None
    history: List[PublicTrackingEntry]

    @classmethod
    def from_request(cls, request: DocumentRequest) -> "TrackingView":
        return cls(
            reference_number=request.reference_number,
            request_no=request.request_no,
            status=request.status.display_name,
            requester_name=request.requester_name,
            documents=request.document_names,
            scheduled_pickup=request.scheduled_pickup,
            submitted_at=request.created_at,
            date_completed=request.date_completed,
            history=[PublicTrackingEntry.from_entry(entry) for entry in request.tracking],
        )


class StatusCounts(CamelModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    ready_for_pickup: int = 0
    released: int = 0
    declined: int = 0


def _request_fields(request: DocumentRequest) -> dict:
    return {
        "id": request.id,
        "request_id": request.request_id,
        "request_no": request.request_no,
        "reference_number": request.reference_number,
        "requester_kind": request.requester_kind,
        "requester_name": request.requester_name,
        "requester_email": request.requester_email,
        "course": request.course.name if request.course is not None else None,
        "educational_level": request.course.educational_level if request.course is not None else None,
        "purpose": request.purpose.name if request.purpose is not None else None,
        "department_id": request.department_id,
        "department": request.department.name.strip() if request.department is not None else None,
        "status": request.status.display_name,
        "status_id": request.status_id,
        "processed_by": request.processed_by,
        "scheduled_pickup": request.scheduled_pickup,
        "total_amount": float(request.total_amount or 0),
        "school_year": request.school_year,
        "semester": request.semester,
        "admin_notes": request.admin_notes,
        "created_at": request.created_at,
        "updated_at": request.updated_at,
        "date_completed": request.date_completed,
    }
