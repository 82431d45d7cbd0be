"""API v1 routes."""

from fastapi import APIRouter

from pyusers.api.v1 import health, users

router = APIRouter()

router.include_router(health.router, tags=["health"])
router.include_router(users.router, tags=["users"])
