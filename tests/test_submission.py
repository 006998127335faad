"""
Tests for request submission.
"""

import re

import pytest
from sqlalchemy import func, select

from registrar.core.errors import ConflictError, ValidationError
from registrar.models.request import DocumentRequest, RequestStatus
from registrar.models.requester import Alumni, Student
from registrar.schemas.request import AlumniSubmission, StudentSubmission
from registrar.services.request_query import RequestQueryService
from registrar.services.submission import (
    MAX_DOCUMENT_QUANTITY, SUBMITTED_NOTE, generate_reference_number, is_valid_reference_number,
)


async def _stored(db, reference_number):
    return await RequestQueryService.find_by_reference(db, reference_number)


@pytest.mark.asyncio
async def test_student_submission_is_routed_priced_and_tracked(
    db_session, departments, document_types, submission_service, student_form, notifier
):
    payload = StudentSubmission.model_validate(student_form())

    response = await submission_service.submit_student(db_session, payload)

    submitted = response.request
    assert response.success is True
    assert submitted.status == "PENDING"
    assert submitted.total_amount == 300.0
    assert submitted.department_id == departments["College of Computer Studies"]
    assert re.fullmatch(r"SPC-DOC-\d{6}-\d{4}", submitted.reference_number)
    assert submitted.request_id.startswith("REQ-")
    assert submitted.request_no.startswith("RN-")

    stored = await _stored(db_session, submitted.reference_number)
    assert stored.status == RequestStatus.PENDING
    assert stored.school_year == "2023-2024"
    assert stored.semester == "First"
    assert [(line.document_type.name, line.quantity) for line in stored.lines] == [
        ("Transcript of Records", 2)
    ]
    assert [(entry.status, entry.notes) for entry in stored.tracking] == [
        (RequestStatus.PENDING, SUBMITTED_NOTE)
    ]
    assert stored.student.department_id == departments["College of Computer Studies"]

    summaries = notifier.of_kind("submission")
    assert len(summaries) == 1
    email, name, reference, documents, total = summaries[0]
    assert email == "maria.cruz@school.edu"
    assert name == "Maria Santos Cruz"
    assert reference == submitted.reference_number
    assert documents == [("Transcript of Records", 2)]
    assert total == 300.0


@pytest.mark.asyncio
async def test_alumni_pre_college_submission_routes_by_level(
    db_session, departments, document_types, submission_service, alumni_form
):
    payload = AlumniSubmission.model_validate(
        alumni_form(course=None, educationalLevel="Elementary", collegeDepartment="College of Nursing")
    )

    response = await submission_service.submit_alumni(db_session, payload)

    assert response.request.department_id == departments["Grade School Department"]
    stored = await _stored(db_session, response.request.reference_number)
    assert stored.requester_kind == "alumni"
    assert stored.course.name == "Not Applicable"
    assert stored.alumni.year_graduated == "2019"


@pytest.mark.asyncio
async def test_legacy_document_field_names_are_accepted(
    db_session, departments, document_types, submission_service, student_form
):
    payload = StudentSubmission.model_validate(student_form(documents=[
        {"documentName": "Diploma", "quantity": 1, "checked": True, "year": "2020"},
        {"documentName": "Certificate of Enrollment", "quantity": 3, "checked": False},
    ]))

    response = await submission_service.submit_student(db_session, payload)

    assert response.request.total_amount == 300.0
    stored = await _stored(db_session, response.request.reference_number)
    assert stored.document_names == ["Diploma"]
    assert stored.school_year == "2020"


@pytest.mark.asyncio
async def test_missing_fields_are_reported_per_field(db_session, seeded, submission_service, student_form):
    payload = StudentSubmission.model_validate(
        student_form(studentNumber="", firstName=" ", lastName=None, documents=[])
    )

    with pytest.raises(ValidationError) as exc_info:
        await submission_service.submit_student(db_session, payload)

    messages = {error["param"]: error["msg"] for error in exc_info.value.errors}
    assert messages["studentNumber"] == "Student number is required"
    assert messages["firstName"] == "First name is required"
    assert messages["lastName"] == "Last name is required"
    assert messages["documents"] == "At least one document must be requested"


@pytest.mark.asyncio
async def test_alumni_email_is_required(db_session, seeded, submission_service, alumni_form):
    payload = AlumniSubmission.model_validate(alumni_form(email=None))

    with pytest.raises(ValidationError) as exc_info:
        await submission_service.submit_alumni(db_session, payload)

    assert {"param": "email", "msg": "SPC email is required"} in exc_info.value.errors


@pytest.mark.asyncio
async def test_unknown_document_type_rolls_back_requester(
    db_session, departments, document_types, submission_service, student_form
):
    payload = StudentSubmission.model_validate(student_form(documents=[
        {"documentTypeName": "Honorable Dismissal", "quantity": 1},
    ]))

    with pytest.raises(ValidationError, match="Document type not found: Honorable Dismissal"):
        await submission_service.submit_student(db_session, payload)

    students = (await db_session.execute(select(func.count(Student.id)))).scalar()
    requests = (await db_session.execute(select(func.count(DocumentRequest.id)))).scalar()
    assert students == 0
    assert requests == 0


@pytest.mark.asyncio
async def test_inactive_document_type_is_rejected(
    db_session, departments, document_types, submission_service, student_form
):
    payload = StudentSubmission.model_validate(student_form(documents=[
        {"documentTypeName": "Good Moral Certificate", "quantity": 1},
    ]))

    with pytest.raises(ValidationError):
        await submission_service.submit_student(db_session, payload)


@pytest.mark.asyncio
async def test_quantity_above_limit_is_rejected(
    db_session, departments, document_types, submission_service, student_form
):
    payload = StudentSubmission.model_validate(student_form(documents=[
        {"documentTypeName": "Transcript of Records", "quantity": MAX_DOCUMENT_QUANTITY + 1},
    ]))

    with pytest.raises(ValidationError) as exc_info:
        await submission_service.submit_student(db_session, payload)

    assert {"param": "documents", "msg": "Quantity cannot exceed 100 copies"} in exc_info.value.errors
    requests = (await db_session.execute(select(func.count(DocumentRequest.id)))).scalar()
    assert requests == 0


@pytest.mark.asyncio
async def test_quantity_at_limit_is_accepted(
    db_session, departments, document_types, submission_service, student_form
):
    payload = StudentSubmission.model_validate(student_form(documents=[
        {"documentTypeName": "Transcript of Records", "quantity": MAX_DOCUMENT_QUANTITY},
    ]))

    response = await submission_service.submit_student(db_session, payload)

    assert response.success is True
    assert response.request.total_amount == 15000.0


@pytest.mark.asyncio
async def test_client_reference_number_kept_when_well_formed(
    db_session, departments, document_types, submission_service, alumni_form
):
    payload = AlumniSubmission.model_validate(alumni_form(referenceNumber="SPC-DOC-123456-0001"))

    response = await submission_service.submit_alumni(db_session, payload)

    assert response.request.reference_number == "SPC-DOC-123456-0001"


@pytest.mark.asyncio
async def test_malformed_client_reference_number_replaced(
    db_session, departments, document_types, submission_service, alumni_form
):
    payload = AlumniSubmission.model_validate(alumni_form(referenceNumber="REF-abc"))

    response = await submission_service.submit_alumni(db_session, payload)

    assert response.request.reference_number != "REF-abc"
    assert is_valid_reference_number(response.request.reference_number)


@pytest.mark.asyncio
async def test_reused_reference_number_is_a_conflict(
    db_session, departments, document_types, submission_service, alumni_form
):
    first = AlumniSubmission.model_validate(alumni_form(referenceNumber="SPC-DOC-654321-0002"))
    second = AlumniSubmission.model_validate(
        alumni_form(referenceNumber="SPC-DOC-654321-0002", email="someone.else@school.edu")
    )
    await submission_service.submit_alumni(db_session, first)

    with pytest.raises(ConflictError):
        await submission_service.submit_alumni(db_session, second)

    alumni = (await db_session.execute(select(func.count(Alumni.id)))).scalar()
    assert alumni == 1


@pytest.mark.asyncio
async def test_staff_member_is_preassigned(
    db_session, departments, document_types, submission_service, student_form, make_user
):
    staff = await make_user("ccs_staff", department_ids=[departments["College of Computer Studies"]])
    payload = StudentSubmission.model_validate(student_form())

    response = await submission_service.submit_student(db_session, payload)

    stored = await _stored(db_session, response.request.reference_number)
    assert stored.processed_by == staff.id


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_submission(
    db_session, departments, document_types, routing_config, student_form
):
    from registrar.services.routing import DepartmentRouter
    from registrar.services.submission import SubmissionService

    class BrokenNotifier:
        def send_submission_summary(self, *args):
            raise ConnectionError("SMTP unavailable")

    service = SubmissionService(DepartmentRouter(routing_config), notifier=BrokenNotifier())
    payload = StudentSubmission.model_validate(student_form())

    response = await service.submit_student(db_session, payload)

    assert response.success is True
    assert await _stored(db_session, response.request.reference_number) is not None


def test_generated_reference_numbers_match_pattern():
    assert all(is_valid_reference_number(generate_reference_number()) for _ in range(20))
    assert not is_valid_reference_number("SPC-DOC-12345-0001")
    assert not is_valid_reference_number(None)
