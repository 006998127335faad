"""
Administration endpoints.

Account creation and staff department assignments. Admin only.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.core.rbac import AdminPrincipal, require_admin
from registrar.db.session import get_db
from registrar.schemas.user import StaffDepartments, StaffDepartmentsUpdate, User, UserCreate
from registrar.services.user import UserService

router = APIRouter()


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
) -> User:
    """
    Create a staff or admin account.

    Args:
        user_in: Account data, with initial departments for staff
        db: Database session
        admin: Calling admin

    Returns:
        Created user
    """
    logger.info(f"User creation requested by admin {admin.user_id}: {user_in.username}")
    return await UserService.create(db, user_in)


@router.get("/users", response_model=List[User])
async def list_users(
    role: Optional[str] = Query(None, pattern="^(admin|staff)$", description="Filter by role"),
    db: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
) -> List[User]:
    return await UserService.list_users(db, role=role)


@router.get("/staff/{user_id}/departments", response_model=StaffDepartments)
async def get_staff_departments(
    user_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
) -> StaffDepartments:
    """Current department assignments of a staff member."""
    department_ids = await UserService.get_staff_departments(db, user_id)
    return StaffDepartments(user_id=user_id, department_ids=department_ids)


@router.put("/staff/{user_id}/departments", response_model=StaffDepartments)
async def set_staff_departments(
    update: StaffDepartmentsUpdate,
    user_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
) -> StaffDepartments:
    """
    Replace a staff member's department assignments.

    The change applies to the staff member's next request; no token needs
    to be reissued.
    """
    logger.info(f"Admin {admin.user_id} updating departments of user {user_id}: {update.department_ids}")
    department_ids = await UserService.set_staff_departments(db, user_id, update.department_ids)
    return StaffDepartments(user_id=user_id, department_ids=department_ids)
