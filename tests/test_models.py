"""
Tests for SQLAlchemy models.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.security import verify_password
from registrar.models.department import normalize_department_name
from registrar.models.reference import Course, Purpose
from registrar.models.request import (
    DocumentRequest, RequestDocumentLine, RequesterKind, RequestStatus, OPEN_STATUSES,
)
from registrar.models.requester import Alumni, Student
from registrar.models.user import User


def test_request_status_names():
    assert [status.display_name for status in RequestStatus] == [
        "PENDING", "PROCESSING", "READY_FOR_PICKUP", "RELEASED", "DECLINED",
    ]
    assert [status for status in RequestStatus if status.is_terminal] == [
        RequestStatus.RELEASED, RequestStatus.DECLINE,
    ]
    assert set(OPEN_STATUSES).isdisjoint({RequestStatus.RELEASED, RequestStatus.DECLINE})


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("College of Law\r\n", "college of law"),
        ("  Grade School Department\n", "grade school department"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_department_name(raw, expected):
    assert normalize_department_name(raw) == expected


def test_requester_full_name_skips_missing_middle_name():
    assert Student(first_name="Ana", last_name="Reyes").full_name == "Ana Reyes"
    assert Alumni(first_name="Ana", middle_name="Lim", last_name="Reyes").full_name == "Ana Lim Reyes"


@pytest.mark.asyncio
async def test_request_requester_properties(make_request):
    request = await make_request(email="requester@school.edu")

    assert request.status == RequestStatus.PENDING
    assert request.requester_kind == RequesterKind.STUDENT.value
    assert request.requester is request.student
    assert request.requester_name == "Juan Dela Cruz"
    assert request.requester_email == "requester@school.edu"


@pytest.mark.asyncio
async def test_document_names_are_deduplicated(db_session: AsyncSession, make_request, document_types):
    request = await make_request()
    transcript = document_types["Transcript of Records"]
    request.lines.append(RequestDocumentLine(
        document_type_id=transcript.id,
        document_type=transcript,
        quantity=1,
        unit_price=transcript.base_price,
        total_price=transcript.base_price,
        school_year="2018-2019",
    ))
    await db_session.commit()

    assert len(request.lines) == 2
    assert request.document_names == ["Transcript of Records"]


@pytest.mark.asyncio
async def test_request_needs_exactly_one_requester(db_session: AsyncSession, seeded):
    course = Course(name="BSIT", educational_level="College")
    purpose = Purpose(name="Employment")
    db_session.add_all([course, purpose])
    await db_session.commit()

    db_session.add(DocumentRequest(
        request_id="REQ-orphan",
        request_no="RN-orphan",
        reference_number="SPC-DOC-000001-0001",
        requester_kind=RequesterKind.STUDENT.value,
        course_id=course.id,
        purpose_id=purpose.id,
        status_id=int(RequestStatus.PENDING),
    ))

    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


@pytest.mark.asyncio
async def test_user_password_is_hashed(db_session: AsyncSession):
    user = User(username="hash_check", email="hash_check@school.edu", full_name="Hash Check", role="staff")
    user.set_password("testpassword123")
    db_session.add(user)
    await db_session.commit()

    assert user.hashed_password != "testpassword123"
    assert verify_password("testpassword123", user.hashed_password)
    assert user.is_active is True
