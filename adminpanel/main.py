"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adminpanel.config import get_settings
from adminpanel.core.exceptions import setup_exception_handlers
from adminpanel.core.logging import configure_logging
from adminpanel.core.middleware import setup_middleware
from adminpanel.core.rate_limit import limiter
from adminpanel.infrastructure.database import SessionLocal, get_db, init_db

# Import all models so SQLAlchemy knows about them
from adminpanel.domain.models.account import Account  # noqa: F401
from adminpanel.domain.models.role import Role, UserRole  # noqa: F401
from adminpanel.domain.models.user import User, UserProfile  # noqa: F401

# Import routers
from adminpanel.interfaces.api.admin_database import router as admin_database_router
from adminpanel.interfaces.api.admin_environment import router as admin_environment_router
from adminpanel.interfaces.api.admin_media import router as admin_media_router
from adminpanel.interfaces.api.admin_roles import router as admin_roles_router
from adminpanel.interfaces.api.admin_users import router as admin_users_router
from adminpanel.interfaces.api.auth import router as auth_router
from adminpanel.interfaces.api.avatar import router as avatar_router
from adminpanel.interfaces.api.oauth import router as oauth_router
from adminpanel.interfaces.api.storage import router as storage_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)

APP_NAME = "Admin Console"
APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting admin console", env=settings.ENVIRONMENT)

    # create_all only; production schemas are managed outside the app
    init_db()
    logger.info("Database tables created/verified")

    from adminpanel.application.services.role_service import ensure_default_roles
    db = SessionLocal()
    try:
        ensure_default_roles(db)
    finally:
        db.close()

    yield

    logger.info("Admin console stopped")


app = FastAPI(
    title=APP_NAME,
    description="User, role, media and settings administration API",
    version=APP_VERSION,
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging, Security headers)
setup_middleware(app)

# Exception handling
setup_exception_handlers(app)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(oauth_router)
app.include_router(admin_users_router)
app.include_router(admin_roles_router)
app.include_router(admin_database_router)
app.include_router(admin_media_router)
app.include_router(admin_environment_router)
app.include_router(storage_router)
app.include_router(avatar_router)


@app.get("/")
def root():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unreachable"},
        )
    return {"status": "healthy", "database": "connected"}
