"""FastAPI application entry point."""

import logging
import sys
from uuid import uuid4

# Configure logging to output to stdout (the platform captures this)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quota_gate.middleware.cors import cors_headers, cors_middleware
from quota_gate.models.enums import GateError, GateStatus
from quota_gate.routers import health, track_ai

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Study Companion Quota Gate",
    description="Per-user daily AI quota for the study companion app",
    version="0.1.0",
    redirect_slashes=False,  # Prevent 307 redirects that break HTTPS through proxies
)

app.middleware("http")(cors_middleware)

# Include routers
app.include_router(health.router)
app.include_router(track_ai.router)


# Global exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with the gate envelope."""
    error_id = str(uuid4())

    if exc.status_code in (401, 403):
        content = {"status": GateStatus.UNAUTHORIZED.value, "error_id": error_id}
    else:
        content = {
            "status": GateStatus.ERROR.value,
            "error": str(exc.detail),
            "error_id": error_id,
        }

    logger.warning(
        f"HTTP {exc.status_code} [{error_id}]: {exc.detail} - {request.method} {request.url.path}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors with field details."""
    error_id = str(uuid4())

    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"]})

    logger.warning(
        f"Validation error [{error_id}]: {errors} - {request.method} {request.url.path}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "status": GateStatus.ERROR.value,
            "error": "validation",
            "error_id": error_id,
            "errors": errors,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unhandled exceptions."""
    error_id = str(uuid4())

    logger.error(
        f"Unhandled exception [{error_id}]: {type(exc).__name__}: {exc} - "
        f"{request.method} {request.url.path}",
        exc_info=True,
    )

    # Runs outside the middleware stack, so CORS headers are added here
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": GateStatus.ERROR.value,
            "error": GateError.INTERNAL.value,
            "error_id": error_id,
        },
        headers=cors_headers(),
    )
