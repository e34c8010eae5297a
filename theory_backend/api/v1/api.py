"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from theory_backend.api.v1 import assignments, health, practice, tests, topics, user

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(topics.router, prefix="/topics", tags=["topics"])
api_router.include_router(tests.router, prefix="/tests", tags=["tests"])
api_router.include_router(practice.router, prefix="/practice", tags=["practice"])
api_router.include_router(
    assignments.router, prefix="/assignments", tags=["assignments"]
)
api_router.include_router(user.router, prefix="/user", tags=["user"])
