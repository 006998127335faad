# rbac.py
"""
Role-based access control.

Two roles exist. Admins see every department; staff see only the
departments assigned to them, read fresh from the database on every
request. The authenticated identity is turned into a ``Principal`` and all
authorization decisions match on its variant.
"""
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Union

from fastapi import Depends
from sqlalchemy import false, select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.auth import get_current_active_user
from registrar.core.errors import AuthorizationError
from registrar.core.logging import logger
from registrar.db.session import get_db
from registrar.models.department import staff_departments
from registrar.models.user import User


class Role(str, Enum):
    """User roles."""
    ADMIN = "admin"
    STAFF = "staff"


@dataclass(frozen=True)
class AdminPrincipal:
    user_id: int


@dataclass(frozen=True)
class StaffPrincipal:
    user_id: int
    department_ids: FrozenSet[int]


Principal = Union[AdminPrincipal, StaffPrincipal]

# None means every department.
DepartmentScope = Optional[FrozenSet[int]]


async def load_staff_departments(db: AsyncSession, user_id: int) -> FrozenSet[int]:
    """Read a staff member's current department assignments."""
    result = await db.execute(
        select(staff_departments.c.department_id).where(staff_departments.c.user_id == user_id)
    )
    return frozenset(result.scalars().all())


async def principal_for_user(db: AsyncSession, user: User) -> Principal:
    """
    Build the principal for an authenticated user.

    Raises:
        AuthorizationError: The user's role is neither admin nor staff
    """
    match user.role:
        case Role.ADMIN.value:
            return AdminPrincipal(user.id)
        case Role.STAFF.value:
            return StaffPrincipal(user.id, await load_staff_departments(db, user.id))
        case _:
            logger.warning(f"User {user.username} has unsupported role '{user.role}'")
            raise AuthorizationError("Insufficient permissions")


async def get_principal(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Principal:
    """FastAPI dependency returning the caller's principal."""
    return await principal_for_user(db, current_user)


async def require_admin(principal: Principal = Depends(get_principal)) -> AdminPrincipal:
    """FastAPI dependency admitting only admins."""
    match principal:
        case AdminPrincipal():
            return principal
        case StaffPrincipal(user_id=user_id):
            logger.warning(f"Staff user {user_id} attempted an admin-only action")
            raise AuthorizationError("Insufficient permissions")
        case _:
            raise TypeError(f"Unsupported principal: {principal!r}")


def department_scope(principal: Principal, requested_department_id: Optional[int] = None) -> DepartmentScope:
    """
    Departments the principal may see, narrowed by an optional request filter.

    Args:
        principal: Caller
        requested_department_id: Department filter supplied by the client

    Returns:
        None for unrestricted, otherwise the allowed department ids (possibly
        empty)

    Raises:
        AuthorizationError: Staff asked for a department outside their set
    """
    match principal:
        case AdminPrincipal():
            if requested_department_id is None:
                return None
            return frozenset({requested_department_id})
        case StaffPrincipal(user_id=user_id, department_ids=department_ids):
            if requested_department_id is None:
                return department_ids
            if requested_department_id not in department_ids:
                logger.warning(
                    f"Staff user {user_id} requested department {requested_department_id} "
                    f"outside assignments {sorted(department_ids)}"
                )
                raise AuthorizationError("You do not have access to this department")
            return frozenset({requested_department_id})
        case _:
            raise TypeError(f"Unsupported principal: {principal!r}")


def apply_department_scope(query, column, scope: DepartmentScope):
    """Restrict a select to the scope; an empty scope matches nothing."""
    if scope is None:
        return query
    if not scope:
        return query.where(false())
    return query.where(column.in_(sorted(scope)))


def can_access_department(principal: Principal, department_id: Optional[int]) -> bool:
    """Whether the principal may see a request routed to ``department_id``."""
    match principal:
        case AdminPrincipal():
            return True
        case StaffPrincipal(department_ids=department_ids):
            return department_id is not None and department_id in department_ids
        case _:
            raise TypeError(f"Unsupported principal: {principal!r}")
