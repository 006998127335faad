"""
Pagination helpers for list endpoints.
"""
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    """Response wrapper for paginated results."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool


class PaginationParams:
    """Parameters for pagination."""

    def __init__(
        self,
        page: int = 1,
        size: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ):
        self.page = page
        self.size = size
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


async def paginate_query(
    db: AsyncSession,
    query: Any,
    pagination: PaginationParams,
    sortable: Optional[Dict[str, Any]] = None,
) -> PaginatedResponse[Any]:
    """
    Count and slice an ORM select.

    Args:
        db: Database session
        query: SQLAlchemy select returning mapped rows
        pagination: Pagination parameters
        sortable: Allowed sort keys mapped to columns; unknown keys are ignored

    Returns:
        One page of ORM objects with paging metadata
    """
    sort_col = (sortable or {}).get(pagination.sort_by)
    if sort_col is not None:
        query = query.order_by(sort_col.desc() if pagination.sort_order == "desc" else sort_col.asc())
    else:
        logger.debug(f"Skipping sort: unsupported field '{pagination.sort_by}'")

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(query.offset(pagination.offset).limit(pagination.size))
    items = list(result.scalars().all())

    pages = (total + pagination.size - 1) // pagination.size if total else 0
    return PaginatedResponse(
        items=items,
        total=total,
        page=pagination.page,
        size=pagination.size,
        pages=pages,
        has_next=pagination.page < pages,
        has_prev=pagination.page > 1,
    )
