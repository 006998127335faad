"""
Document type registry endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.rbac import AdminPrincipal, require_admin
from registrar.db.session import get_db
from registrar.schemas.document_type import DocumentType, DocumentTypeCreate, DocumentTypeUpdate
from registrar.services.document_type import DocumentTypeService

router = APIRouter()


@router.get("", response_model=List[DocumentType])
async def list_document_types(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
) -> List[DocumentType]:
    """Document types offered on the request form."""
    return await DocumentTypeService.list_types(db, include_inactive=include_inactive)


@router.post("", response_model=DocumentType, status_code=status.HTTP_201_CREATED)
async def create_document_type(
    doc_in: DocumentTypeCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
) -> DocumentType:
    return await DocumentTypeService.create(db, doc_in)


@router.patch("/{doc_type_id}", response_model=DocumentType)
async def update_document_type(
    doc_in: DocumentTypeUpdate,
    doc_type_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
) -> DocumentType:
    """Change price, description or availability of a document type."""
    return await DocumentTypeService.update(db, doc_type_id, doc_in)
