"""
Campus Placement Portal - Main Application

FastAPI backend with:
- PostgreSQL (or SQLite via DATABASE_URL) for all data, migrated on startup
- Server-side sessions with a signed cookie, separate student/admin/recruiter claims
- Email verification codes for student accounts
- DeepSeek-backed placement assistant chat

Run: uvicorn app.main:app --reload
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from app.api import api_router, form_router
from app.core.config import get_settings
from app.core.errors import AppError, InternalError
from app.core.sessions import purge_expired_sessions
from app.db.migrations import run_migrations
from app.utils.pages import error_page

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger("app")

# Get the project root directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
FRONTEND_DIR = os.path.join(PROJECT_ROOT, "frontend", "public")

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# Create FastAPI app
app = FastAPI(
    title="Campus Placement Portal",
    description="""
    Campus placement management.

    ## Features
    - **Students**: signup with email verification, profile, documents, drives, applications, round tracking
    - **Recruiters**: post drives (admin approval), review applicants
    - **Admins**: drives, round updates with history, announcements, interview slots, offers, CSV reports
    - **Support**: helpdesk tickets, mentor sessions, success stories, AI assistant
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def wants_html(request: Request) -> bool:
    """Form posts from the browser get an HTML error page; everything else gets JSON."""
    if request.url.path.startswith("/api"):
        return False
    content_type = request.headers.get("content-type", "")
    return content_type.startswith(FORM_CONTENT_TYPES) or "text/html" in request.headers.get("accept", "")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if wants_html(request):
        return error_page(exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return await app_error_handler(request, InternalError())


# Include routes
app.include_router(api_router, prefix="/api")
app.include_router(form_router)

# Serve static files (pages, assets)
if os.path.exists(FRONTEND_DIR):
    app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Apply pending schema migrations and drop expired sessions."""
    applied = run_migrations()
    if applied:
        logger.info("Schema migrations applied: %s", applied)
    purge_expired_sessions()
    os.makedirs(settings.upload_dir, exist_ok=True)


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Campus Placement Portal"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    from app.db.database import test_db_connection

    return {
        "status": "healthy",
        "database": "connected" if test_db_connection() else "disconnected",
        "email": "configured" if settings.smtp_configured else "not configured",
        "ai_assistant": "configured" if settings.deepseek_api_key else "not configured"
    }
