"""
Sentinel API - FastAPI Application Entry Point

Community safety backend for Port Elizabeth (Gqeberha) suburbs: neighbourhood
alerts, groups, SOS alerts to trusted contacts and time-boxed location sharing.

DESIGN PRINCIPLES:
- Firestore is the only store; Firebase Auth owns identities
- Every response uses the same envelope: success, message, data, error, timestamp
- Push notifications are best effort and never fail the request that caused them
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sentinel.config.firebase import initialize_firebase
from sentinel.core.exceptions import SentinelError
from sentinel.core.rate_limit import RateLimitMiddleware
from sentinel.core.settings import settings
from sentinel.models.base import error_response
from sentinel.routes import groups, health, location, panic, posts, users

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Community safety API: alerts, groups, SOS and location sharing",
    debug=settings.DEBUG
)


@app.exception_handler(SentinelError)
async def sentinel_exception_handler(request: Request, exc: SentinelError):
    """Map domain errors onto their status code and the error envelope."""
    if not exc.public:
        logger.error(f"Upstream failure on {request.method} {request.url.path}: {exc.message}")
        message = "Internal server error"
    else:
        message = exc.message

    return JSONResponse(status_code=exc.status_code, content=error_response(message))


def _describe_validation_error(error: dict) -> str:
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    message = error.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


# Malformed bodies and query parameters are client errors (400), not 422
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info(f"Request validation failed on {request.method} {request.url.path}: {errors}")
    message = "; ".join(_describe_validation_error(error) for error in errors) or "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(message),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response("Internal server error"),
    )


# Credentials cannot be combined with a wildcard origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize Firebase on application startup.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        initialize_firebase()
    except Exception as e:
        logger.warning(f"Firebase initialization failed: {e}")
        logger.warning("The app will start but database and auth operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(groups.router)
app.include_router(panic.router)
app.include_router(location.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }
