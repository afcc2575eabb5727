"""
Health check endpoints.
Used for monitoring and deployment readiness checks.
"""

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from sentinel.config.firebase import get_db
from sentinel.core.exceptions import StoreError
from sentinel.core.settings import settings
from sentinel.utils.firestore_helpers import utcnow
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utcnow().isoformat()
    }


@router.get("/db")
async def database_health():
    """
    Firestore connectivity check.
    Lists root collections, which needs no existing documents.
    """
    try:
        collections = await run_in_threadpool(lambda: list(get_db().collections()))
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        raise StoreError("Database connection failed") from e

    return {
        "status": "healthy",
        "database": "firestore",
        "connected": True,
        "collectionsCount": len(collections),
        "timestamp": utcnow().isoformat()
    }
