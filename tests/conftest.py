"""
Configuration for pytest.

This module provides fixtures and configuration for running tests.
"""

import itertools
import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-registrar-tests")
os.environ["ENABLE_EMAIL_NOTIFICATIONS"] = "false"

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from registrar.core.deps import get_notifier
from registrar.core.routing_config import RoutingConfig
from registrar.core.security import create_access_token
from registrar.db.bootstrap import bootstrap_reference_data
from registrar.db.tracking import append_tracking_entry
from registrar.db.session import enable_sqlite_foreign_keys, get_db
from registrar.main import app
from registrar.models.base import Base
from registrar.models.reference import DocumentType
from registrar.models.request import DocumentRequest, RequestDocumentLine, RequesterKind, RequestStatus
from registrar.models.user import User
from registrar.schemas.user import UserCreate
from registrar.services.reference_data import ReferenceDataService
from registrar.services.request_query import RequestQueryService
from registrar.services.routing import DepartmentRouter
from registrar.services.status import StatusService
from registrar.services.submission import SUBMITTED_NOTE, SubmissionService
from registrar.services.user import UserService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"


class RecordingNotifier:
    """Notifier that records what would have been sent."""

    def __init__(self):
        self.sent: List[Tuple[str, tuple]] = []

    def send_submission_summary(self, *args) -> bool:
        self.sent.append(("submission", args))
        return True

    def send_ready_for_pickup(self, *args) -> bool:
        self.sent.append(("ready", args))
        return True

    def send_password_reset_email(self, *args) -> bool:
        self.sent.append(("password_reset", args))
        return True

    def of_kind(self, kind: str) -> List[tuple]:
        return [args for sent_kind, args in self.sent if sent_kind == kind]


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def routing_config() -> RoutingConfig:
    return RoutingConfig.default()


@pytest.fixture
async def seeded(db_session, routing_config):
    """Statuses and pre-college departments, as created at startup."""
    await bootstrap_reference_data(db_session, routing_config)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def departments(db_session, seeded) -> Dict[str, int]:
    """College departments used across tests, by name."""
    names = [
        "College of Computer Studies",
        "College of Nursing",
        "College of Education",
        "Grade School Department",
        "Basic Education Department",
        "Junior High School Department",
    ]
    result = {}
    for name in names:
        department = await ReferenceDataService.ensure_department(db_session, name)
        result[name] = department.id
    await db_session.commit()
    return result


@pytest.fixture
async def document_types(db_session) -> Dict[str, DocumentType]:
    types = [
        DocumentType(name="Transcript of Records", base_price=Decimal("150.00")),
        DocumentType(name="Certificate of Enrollment", base_price=Decimal("50.00")),
        DocumentType(name="Diploma", base_price=Decimal("300.00")),
        DocumentType(name="Good Moral Certificate", base_price=Decimal("75.00"), is_active=False),
    ]
    db_session.add_all(types)
    await db_session.commit()
    return {doc_type.name: doc_type for doc_type in types}


async def create_user(
    db: AsyncSession,
    username: str,
    role: str = "staff",
    department_ids: Iterable[int] = (),
) -> User:
    return await UserService.create(
        db,
        UserCreate(
            username=username,
            email=f"{username}@school.edu",
            full_name=f"{username.title()} User",
            role=role,
            password=TEST_PASSWORD,
            department_ids=list(department_ids),
        ),
    )


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(subject=user.username, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(db_session, seeded):
    """Builder for staff and admin accounts with a known password."""
    async def _make(username: str, role: str = "staff", department_ids: Iterable[int] = ()) -> User:
        return await create_user(db_session, username, role=role, department_ids=department_ids)
    return _make


@pytest.fixture
def headers_for():
    """Bearer headers for a user."""
    return auth_headers


@pytest.fixture
async def admin_user(db_session, seeded) -> User:
    return await create_user(db_session, "registrar_admin", role="admin")


@pytest.fixture
async def async_client(session_factory, notifier, seeded):
    """Create an async test client."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _form(kind: str, **overrides) -> dict:
    form = {
        "firstName": "Maria",
        "middleName": "Santos",
        "lastName": "Cruz",
        "contactNo": "09171234567",
        "course": "BSIT",
        "educationalLevel": "College",
        "purpose": "Employment",
        "documents": [
            {"documentTypeName": "Transcript of Records", "quantity": 2, "selected": True,
             "schoolYear": "2023-2024", "semester": "First"},
        ],
    }
    if kind == "student":
        form.update(studentNumber="2021-00042", email="maria.cruz@school.edu")
    else:
        form.update(email="maria.alumna@school.edu", yearGraduated="2019")
    form.update(overrides)
    return form


@pytest.fixture
def student_form():
    """Builder for a student request form body."""
    return lambda **overrides: _form("student", **overrides)


@pytest.fixture
def alumni_form():
    """Builder for an alumni request form body."""
    return lambda **overrides: _form("alumni", **overrides)


@pytest.fixture
def submission_service(routing_config, notifier):
    return SubmissionService(DepartmentRouter(routing_config), notifier=notifier)


@pytest.fixture
def status_service(notifier):
    return StatusService(notifier=notifier)


@pytest.fixture
def make_request(db_session, seeded, document_types):
    """
    Store a request directly, bypassing submission checks.

    Lets tests pick the primary key, status, department and creation time.
    """
    sequence = itertools.count(1)

    async def _make(
        request_pk: Optional[int] = None,
        status: RequestStatus = RequestStatus.PENDING,
        department_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
        document: str = "Transcript of Records",
        email: str = "juan.delacruz@school.edu",
    ) -> DocumentRequest:
        n = next(sequence)
        student = await ReferenceDataService.upsert_student(
            db_session,
            student_number=f"2019-{n:05d}",
            first_name="Juan",
            last_name="Dela Cruz",
            email=email,
        )
        course = await ReferenceDataService.ensure_course(db_session, "BSIT", "College")
        purpose = await ReferenceDataService.ensure_purpose(db_session, "Employment")
        doc_type = document_types[document]
        request = DocumentRequest(
            id=request_pk,
            request_id=f"REQ-test-{n}",
            request_no=f"RN-test-{n}",
            reference_number=f"SPC-DOC-{n:06d}-0000",
            requester_kind=RequesterKind.STUDENT.value,
            student_id=student.id,
            course_id=course.id,
            purpose_id=purpose.id,
            department_id=department_id,
            status_id=int(status),
            total_amount=doc_type.base_price,
        )
        if created_at is not None:
            request.created_at = created_at
        request.lines.append(RequestDocumentLine(
            document_type_id=doc_type.id,
            document_type=doc_type,
            quantity=1,
            unit_price=doc_type.base_price,
            total_price=doc_type.base_price,
        ))
        db_session.add(request)
        append_tracking_entry(db_session, request, status, SUBMITTED_NOTE)
        await db_session.commit()
        return await RequestQueryService.get_request(db_session, request.id)

    return _make
