"""
Health check endpoint.
"""
from fastapi import APIRouter
from theory_backend.core.datetime_utils import utc_now
from theory_backend.core import settings

router = APIRouter()


@router.get("/health")
def health_check():
    """
    Health check endpoint.
    Returns basic health status of the API.
    """
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }
