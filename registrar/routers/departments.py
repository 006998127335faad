"""
Department API endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.core.rbac import AdminPrincipal, require_admin
from registrar.db.session import get_db
from registrar.schemas.department import Department, DepartmentCreate
from registrar.services.reference_data import ReferenceDataService

router = APIRouter()


@router.get("", response_model=List[Department])
async def list_departments(db: AsyncSession = Depends(get_db)) -> List[Department]:
    """List every department, alphabetically. Used by the public request form."""
    return await ReferenceDataService.list_departments(db)


@router.post("", response_model=Department, status_code=status.HTTP_201_CREATED)
async def create_department(
    department_in: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
) -> Department:
    """
    Create a department, or return the existing one with the same name.

    Args:
        department_in: Department name
        db: Database session
        admin: Calling admin

    Returns:
        The department row
    """
    logger.info(f"Department creation requested by admin {admin.user_id}: {department_in.name}")
    department = await ReferenceDataService.ensure_department(db, department_in.name)
    await db.commit()
    return department
