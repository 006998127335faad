"""
Service layer for the document type registry.
"""

from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.errors import ConflictError, NotFoundError
from registrar.core.logging import logger
from registrar.models.reference import DocumentType
from registrar.schemas.document_type import DocumentTypeCreate, DocumentTypeUpdate


class DocumentTypeService:
    """Service class for document types."""

    @staticmethod
    async def list_types(db: AsyncSession, include_inactive: bool = False) -> List[DocumentType]:
        query = select(DocumentType).order_by(DocumentType.name.asc())
        if not include_inactive:
            query = query.where(DocumentType.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def create(db: AsyncSession, doc_in: DocumentTypeCreate) -> DocumentType:
        """
        Register a new document type.

        Raises:
            ConflictError: A document type with this name exists
        """
        doc_type = DocumentType(
            name=doc_in.name.strip(),
            description=doc_in.description,
            base_price=Decimal(str(doc_in.base_price)),
            is_active=doc_in.is_active,
        )
        db.add(doc_type)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"Document type already exists: {doc_in.name}")
            raise ConflictError(f"Document type already exists: {doc_in.name}") from e
        logger.info(f"Registered document type {doc_type.name} at {doc_type.base_price}")
        return doc_type

    @staticmethod
    async def update(db: AsyncSession, doc_type_id: int, doc_in: DocumentTypeUpdate) -> DocumentType:
        """
        Change price, description or availability. Existing requests keep
        their price snapshot.

        Raises:
            NotFoundError: No such document type
        """
        result = await db.execute(select(DocumentType).where(DocumentType.id == doc_type_id))
        doc_type = result.scalars().first()
        if doc_type is None:
            raise NotFoundError(f"Document type {doc_type_id} not found")

        changes = doc_in.model_dump(exclude_unset=True)
        if changes.get("base_price") is not None:
            changes["base_price"] = Decimal(str(changes["base_price"]))
        for field, value in changes.items():
            if value is not None:
                setattr(doc_type, field, value)
        await db.commit()
        logger.info(f"Updated document type {doc_type.name}: {changes}")
        return doc_type
