"""
Main application entry point.

This module initializes the FastAPI application and includes all routers.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from registrar.core.config import settings
from registrar.core.errors import register_exception_handlers
from registrar.core.logging import logger
from registrar.core.middleware import AuditMiddleware, SecurityHeadersMiddleware
from registrar.core.routing_config import get_routing_config
from registrar.db.bootstrap import bootstrap_reference_data
from registrar.db.session import AsyncSessionLocal
from registrar.routers import (
    admin_router,
    auth_router,
    dashboard_router,
    departments_router,
    document_types_router,
    health_router,
    reports_router,
    requests_router,
)

API_PREFIX = settings.api.prefix

app = FastAPI(
    title=settings.api.title,
    description=settings.api.description,
    version=settings.api.version,
    debug=settings.debug,
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_urls,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router, prefix=f"{API_PREFIX}/health", tags=["health"])
app.include_router(auth_router, prefix=f"{API_PREFIX}/auth", tags=["authentication"])
app.include_router(requests_router, prefix=f"{API_PREFIX}/requests", tags=["requests"])
app.include_router(dashboard_router, prefix=f"{API_PREFIX}/dashboard", tags=["dashboard"])
app.include_router(reports_router, prefix=f"{API_PREFIX}/reports", tags=["reports"])
app.include_router(departments_router, prefix=f"{API_PREFIX}/departments", tags=["departments"])
app.include_router(document_types_router, prefix=f"{API_PREFIX}/document-types", tags=["document-types"])
app.include_router(admin_router, prefix=f"{API_PREFIX}/admin", tags=["admin"])


@app.on_event("startup")
async def startup_event():
    """Actions to run on application startup."""
    logger.info(f"Starting {settings.api.title}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Database URL: {settings.database.url[:20]}...")

    config = get_routing_config()
    async with AsyncSessionLocal() as db:
        await bootstrap_reference_data(db, config)

    logger.info(f"API Docs available at: http://{settings.api.host}:{settings.api.port}/docs")


@app.on_event("shutdown")
async def shutdown_event():
    """Actions to run on application shutdown."""
    logger.info(f"Shutting down {settings.api.title}")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.api.title,
        "version": settings.api.version,
        "docs": "/docs",
    }
