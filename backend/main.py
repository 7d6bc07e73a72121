"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.core.config import settings
from backend.core.middleware import setup_middleware
from backend.core.exceptions import RBACError, status_code_for
from backend.db import session as db_session
from backend.db.store import SqlAlchemyStore
from backend.services.maintenance_service import MaintenanceService

from backend.api.access import router as access_router
from backend.api.roles import router as roles_router
from backend.api.admin import router as admin_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("admin_platform")


def bootstrap_if_needed() -> None:
    """Run full maintenance when roles or the administrator are missing.

    Any failure propagates so the process refuses to serve traffic.
    """
    db = db_session.SessionLocal()
    try:
        service = MaintenanceService(SqlAlchemyStore(db))
        if service.bootstrapper.is_system_initialized():
            logger.info("System already initialized")
            return
        logger.info("System not initialized, running maintenance")
        service.run_full_maintenance()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting %s API", settings.APP_NAME)
    db_session.connect()
    db_session.create_tables()
    if settings.BOOTSTRAP_ON_STARTUP:
        bootstrap_if_needed()

    yield

    logger.info("Shutting down %s API", settings.APP_NAME)
    db_session.disconnect()


app = FastAPI(
    title="Admin Platform API",
    description="Role-based access control for the admin platform",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)


# Exception handler for core errors
@app.exception_handler(RBACError)
async def rbac_exception_handler(request: Request, exc: RBACError):
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"detail": exc.message},
    )

# Register routers
app.include_router(access_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
