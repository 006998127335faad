"""
Department routing.

Assigns every incoming request to one department, trying in order: the
pre-college level table, the course's own department, the legacy program
table and finally the department name typed by the requester. A request no
tier can place is still accepted with no department.
"""

import enum
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.core.routing_config import RoutingConfig
from registrar.models.reference import Course
from registrar.models.request import RequesterKind
from registrar.services.reference_data import ReferenceDataService


class RoutingTier(str, enum.Enum):
    LEVEL = "level"
    COURSE = "course"
    PROGRAM = "program"
    HINT = "hint"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class RoutingDecision:
    department_id: Optional[int]
    tier: RoutingTier

    @property
    def resolved(self) -> bool:
        return self.department_id is not None


class DepartmentRouter:
    """
    Resolve the department for a requester's educational context.

    Args:
        config: Routing tables, loaded once per process
    """

    def __init__(self, config: RoutingConfig):
        self.config = config

    async def derive_course_department(
        self,
        db: AsyncSession,
        educational_level: Optional[str],
        program: Optional[str],
    ) -> Optional[int]:
        """
        Department a new course row should own, from the static tables only.

        Returns:
            Department id, or None when neither table places the course
        """
        level_department = self.config.department_for_level(educational_level)
        if level_department is not None:
            department = await ReferenceDataService.ensure_department(db, level_department)
            return department.id
        name = self.config.department_for_program(program)
        if name is None:
            return None
        department = await ReferenceDataService.find_department_by_name(db, name)
        return department.id if department is not None else None

    async def resolve(
        self,
        db: AsyncSession,
        requester_kind: RequesterKind,
        educational_level: Optional[str] = None,
        course_id: Optional[int] = None,
        program: Optional[str] = None,
        department_hint: Optional[str] = None,
    ) -> RoutingDecision:
        """
        Resolve a department id. The first matching tier wins.

        Args:
            db: Database session
            requester_kind: Student or alumni
            educational_level: Declared educational level
            course_id: Resolved course, if any
            program: Course or program name as submitted
            department_hint: Free-text department name from the client

        Returns:
            The routing decision; ``department_id`` is None when unresolved
        """
        level_department = self.config.department_for_level(educational_level)
        if level_department is not None:
            department = await ReferenceDataService.ensure_department(db, level_department)
            return self._decided(requester_kind, department.id, RoutingTier.LEVEL)

        if course_id is not None:
            result = await db.execute(select(Course.department_id).where(Course.id == course_id))
            course_department_id = result.scalar()
            if course_department_id is not None:
                return self._decided(requester_kind, course_department_id, RoutingTier.COURSE)

        program_department = self.config.department_for_program(program)
        if program_department is not None:
            department = await ReferenceDataService.find_department_by_name(db, program_department)
            if department is not None:
                return self._decided(requester_kind, department.id, RoutingTier.PROGRAM)
            logger.warning(f"Mapped department '{program_department}' for program '{program}' is not registered")

        if department_hint:
            department = await ReferenceDataService.find_department_by_name(db, department_hint)
            if department is not None:
                return self._decided(requester_kind, department.id, RoutingTier.HINT)

        return self._unresolved(requester_kind, educational_level, program, department_hint)

    @staticmethod
    def _decided(requester_kind: RequesterKind, department_id: int, tier: RoutingTier) -> RoutingDecision:
        logger.info(f"Routed {requester_kind.value} request to department {department_id} via {tier.value}")
        return RoutingDecision(department_id, tier)

    @staticmethod
    def _unresolved(
        requester_kind: RequesterKind,
        educational_level: Optional[str],
        program: Optional[str],
        department_hint: Optional[str],
    ) -> RoutingDecision:
        logger.warning(
            f"No department for {requester_kind.value} request "
            f"(level={educational_level!r}, program={program!r}, hint={department_hint!r}); "
            f"leaving it for manual triage"
        )
        return RoutingDecision(None, RoutingTier.UNRESOLVED)
