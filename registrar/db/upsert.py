"""
Race-safe get-or-create for shared reference rows.

Every get-or-create in the application goes through ``upsert_and_fetch``:
a single ``INSERT ... ON CONFLICT`` keyed on the natural key followed by a
select on that key. Concurrent first-time callers therefore agree on one
row without a read-then-write window.
"""

from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger

ModelT = TypeVar("ModelT")

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _dialect_insert(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    try:
        return _INSERT_BY_DIALECT[dialect]
    except KeyError:
        raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'") from None


async def upsert_and_fetch(
    db: AsyncSession,
    model: Type[ModelT],
    keys: Dict[str, Any],
    values: Optional[Dict[str, Any]] = None,
    fill: Iterable[str] = (),
) -> ModelT:
    """
    Insert a row or reuse the existing one with the same natural key.

    Args:
        db: Database session
        model: Mapped class whose table has a unique constraint on ``keys``
        keys: Natural key columns and their values
        values: Extra column values used when the row is created
        fill: Columns from ``values`` that an existing row adopts only while
            its own value is NULL

    Returns:
        The stored row, refreshed from the database
    """
    table = model.__table__
    insert = _dialect_insert(db)
    row = {**(values or {}), **keys}
    fill = [column for column in fill if column in row]

    stmt = insert(table).values(**row)
    if fill:
        stmt = stmt.on_conflict_do_update(
            index_elements=list(keys),
            set_={
                column: func.coalesce(table.c[column], stmt.excluded[column])
                for column in fill
            },
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=list(keys))

    await db.execute(stmt)

    query = (
        select(model)
        .where(*[getattr(model, column) == value for column, value in keys.items()])
        .execution_options(populate_existing=True)
    )
    result = await db.execute(query)
    instance = result.scalars().one()
    logger.debug(f"Upserted {model.__name__} {keys} -> id={instance.id}")
    return instance
