from fastapi import APIRouter

from medibook.domains.scheduling.api import admin, routes, webhooks

api_router = APIRouter()

# API routes (all have /api/v1 prefix from the app factory)
api_router.include_router(routes.providers_router)
api_router.include_router(routes.appointments_router)
api_router.include_router(webhooks.router)
api_router.include_router(admin.router)
