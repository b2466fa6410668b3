"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from community_events.api.routes import admin, events, registrations

api_router = APIRouter(prefix="/api/v1")
# Static /events/... paths must be registered before /events/{id_or_slug}
api_router.include_router(admin.router)
api_router.include_router(registrations.router)
api_router.include_router(events.router)
