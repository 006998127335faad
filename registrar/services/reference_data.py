"""
Service layer for shared reference data.

Departments, courses, purposes and requester rows are created on demand by
submissions. All creation goes through ``upsert_and_fetch`` so concurrent
first-time submissions converge on the same row.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.db.upsert import upsert_and_fetch
from registrar.models.department import Department, normalize_department_name, normalized_name
from registrar.models.reference import Course, Purpose, NOT_APPLICABLE_COURSE, NOT_SPECIFIED_PURPOSE
from registrar.models.requester import Student, Alumni


class ReferenceDataService:
    """Get-or-create and lookups for reference rows."""

    @staticmethod
    async def find_department_by_name(db: AsyncSession, name: Optional[str]) -> Optional[Department]:
        """
        Find a department by normalized name.

        Trailing CR/LF artifacts, surrounding whitespace and case are ignored
        on both sides of the comparison. The lowest id wins if legacy data
        holds several spellings of the same name.

        Args:
            db: Database session
            name: Department name as supplied

        Returns:
            Matching department or None
        """
        key = normalize_department_name(name)
        if not key:
            return None
        result = await db.execute(
            select(Department)
            .where(normalized_name(Department.name) == key)
            .order_by(Department.id.asc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def get_department(db: AsyncSession, department_id: int) -> Optional[Department]:
        result = await db.execute(select(Department).where(Department.id == department_id))
        return result.scalars().first()

    @staticmethod
    async def list_departments(db: AsyncSession) -> List[Department]:
        result = await db.execute(select(Department).order_by(Department.name.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def ensure_department(db: AsyncSession, name: str) -> Department:
        """
        Get or create a department by name.

        An existing row matching the normalized name is reused, so legacy
        names with line-break artifacts are not duplicated. Otherwise the
        cleaned name is upserted.

        Args:
            db: Database session
            name: Department name

        Returns:
            The department row
        """
        existing = await ReferenceDataService.find_department_by_name(db, name)
        if existing is not None:
            return existing

        clean_name = name.replace("\r", "").replace("\n", "").strip()
        department = await upsert_and_fetch(db, Department, keys={"name": clean_name})
        logger.info(f"Department ensured: '{clean_name}' -> {department.id}")
        return department

    @staticmethod
    async def ensure_course(
        db: AsyncSession,
        name: Optional[str],
        educational_level: Optional[str],
        department_id: Optional[int] = None,
    ) -> Course:
        """
        Get or create a course by (name, educational level).

        A known department is recorded only while the stored course has none.

        Args:
            db: Database session
            name: Course or program name, "Not Applicable" when absent
            educational_level: Educational level, empty when absent
            department_id: Derived owning department, if any

        Returns:
            The course row
        """
        course = await upsert_and_fetch(
            db,
            Course,
            keys={
                "name": (name or "").strip() or NOT_APPLICABLE_COURSE,
                "educational_level": (educational_level or "").strip(),
            },
            values={"department_id": department_id},
            fill=("department_id",),
        )
        logger.debug(f"Course resolved: {course.name} [{course.educational_level}] -> {course.id}")
        return course

    @staticmethod
    async def find_purpose(db: AsyncSession, name: Optional[str]) -> Optional[Purpose]:
        purpose_name = (name or "").strip() or NOT_SPECIFIED_PURPOSE
        result = await db.execute(select(Purpose).where(Purpose.name == purpose_name))
        return result.scalars().first()

    @staticmethod
    async def ensure_purpose(
        db: AsyncSession,
        name: Optional[str],
        other_purpose: Optional[str] = None,
    ) -> Purpose:
        """
        Get or create a purpose by name, keeping the first free-text detail.

        Args:
            db: Database session
            name: Purpose name, "Not Specified" when absent
            other_purpose: Free-text elaboration

        Returns:
            The purpose row
        """
        return await upsert_and_fetch(
            db,
            Purpose,
            keys={"name": (name or "").strip() or NOT_SPECIFIED_PURPOSE},
            values={"other_purpose": other_purpose},
            fill=("other_purpose",),
        )

    @staticmethod
    async def upsert_student(
        db: AsyncSession,
        student_number: str,
        first_name: str,
        last_name: str,
        middle_name: Optional[str] = None,
        email: Optional[str] = None,
        contact_no: Optional[str] = None,
        department_id: Optional[int] = None,
    ) -> Student:
        """Create a student on first submission, otherwise fill missing contact data."""
        student = await upsert_and_fetch(
            db,
            Student,
            keys={"student_number": student_number},
            values={
                "first_name": first_name,
                "middle_name": middle_name,
                "last_name": last_name,
                "email": email,
                "contact_no": contact_no,
                "department_id": department_id,
            },
            fill=("email", "contact_no", "department_id"),
        )
        logger.info(f"Student resolved: {student_number} -> {student.id}")
        return student

    @staticmethod
    async def upsert_alumni(
        db: AsyncSession,
        email: str,
        first_name: str,
        last_name: str,
        middle_name: Optional[str] = None,
        contact_no: Optional[str] = None,
        year_graduated: Optional[str] = None,
        department_id: Optional[int] = None,
    ) -> Alumni:
        """Create an alumni record on first submission, otherwise fill missing data."""
        alumni = await upsert_and_fetch(
            db,
            Alumni,
            keys={"email": email},
            values={
                "first_name": first_name,
                "middle_name": middle_name,
                "last_name": last_name,
                "contact_no": contact_no,
                "year_graduated": year_graduated,
                "department_id": department_id,
            },
            fill=("contact_no", "year_graduated", "department_id"),
        )
        logger.info(f"Alumni resolved: {email} -> {alumni.id}")
        return alumni
