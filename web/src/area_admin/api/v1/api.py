"""API for the Area Admin."""

from fastapi import APIRouter

from area_admin.api.v1.endpoints import areas

api_router = APIRouter()
api_router.include_router(areas.router, prefix="/areas", tags=["areas"])
