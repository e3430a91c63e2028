"""API router aggregation."""

from fastapi import APIRouter

from imgbed.api.endpoints import health, images

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(images.router, tags=["images"])
