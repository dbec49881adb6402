"""
API Routes - Combines all route modules.

api_router is mounted under /api and speaks JSON.
form_router holds the browser-facing form posts (signup, signin, apply...)
which answer with redirects or an HTML error page.
"""

from fastapi import APIRouter

from app.api.routes import auth_routes, chat_routes, drive_routes, student_routes
from app.api.routes.admin_routes import router as admin_router
from app.api.routes.announcement_routes import router as announcement_router
from app.api.routes.recruiter_routes import router as recruiter_router
from app.api.routes.support_routes import router as support_router

# Main API router
api_router = APIRouter()

api_router.include_router(drive_routes.router)
api_router.include_router(student_routes.router)
api_router.include_router(support_router)
api_router.include_router(announcement_router)
api_router.include_router(admin_router)
api_router.include_router(recruiter_router)
api_router.include_router(chat_routes.router)

# Browser form routes (no prefix)
form_router = APIRouter()

form_router.include_router(auth_routes.router)
form_router.include_router(drive_routes.form_router)
form_router.include_router(student_routes.form_router)
form_router.include_router(chat_routes.form_router)
