"""Master API router: includes all sub-routers."""

from fastapi import APIRouter

from .routes.contact import router as contact_router
from .routes.csrf import router as csrf_router
from .routes.health import router as health_router

api_router = APIRouter(prefix="/api")

api_router.include_router(csrf_router)
api_router.include_router(contact_router)
api_router.include_router(health_router)
