"""
Health check endpoints.

This module provides endpoints for checking the health of the application,
including database connectivity.
"""

from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.db.session import get_db

router = APIRouter()


@router.get("", response_model=Dict[str, str])
async def health_check() -> Dict[str, str]:
    """Liveness check."""
    logger.debug("Health check endpoint called")
    return {"status": "ok"}


@router.get("/db", response_model=Dict[str, str])
async def database_health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, str]:
    """
    Database health check endpoint.

    Returns:
        Database health status
    """
    try:
        result = await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "error", "database": "unreachable"}

    if result.scalar() != 1:
        logger.error("Database health check failed - unexpected result")
        return {"status": "error", "database": "unexpected_result"}
    return {"status": "ok", "database": "connected"}
