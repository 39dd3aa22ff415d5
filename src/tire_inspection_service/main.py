"""
Tire Inspection Service - Main Application

FastAPI application for tire inspection uploads, records and low-depth alerts.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tire_inspection_service.config.settings import settings
from tire_inspection_service.api.routes.inspections import router as inspections_router
from tire_inspection_service.infrastructure.database.client import db_client
from tire_inspection_service.models import ErrorResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting {settings.service_name} ({settings.environment})")

    # Missing DATABASE_URL aborts startup
    await db_client.initialize()

    yield

    # Shutdown
    logger.info("Shutting down Tire Inspection Service")
    await db_client.close()


# Create FastAPI app
app = FastAPI(
    title="Tire Inspection Service",
    description="Pre-signed image uploads, per-tire inspection records and low tread depth alerts",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render errors as {success: false, error}"""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors (400), not 422"""
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        message = "Invalid JSON in request body"
    elif errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location}: {first.get('msg')}" if location else f"Invalid request: {first.get('msg')}"
    else:
        message = "Invalid request"
    logger.warning(f"Request validation failed on {request.url.path}: {message}")
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Any unexpected failure still answers with the error payload"""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=f"Internal server error: {exc}").model_dump()
    )


# Include routers
app.include_router(inspections_router)


@app.get(
    "/",
    summary="Service Information",
    responses={
        200: {"description": "Service information returned successfully"}
    }
)
async def root():
    """Root endpoint"""
    return {
        "service": settings.service_name,
        "version": "0.1.0",
        "status": "running",
        "environment": settings.environment
    }


@app.get(
    "/health",
    summary="Health Check",
    description="Lightweight liveness check; no database or storage query.",
    responses={
        200: {"description": "Service is healthy and operational"}
    }
)
async def health():
    """Simple health check"""
    return {"status": "healthy", "service": settings.service_name}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tire_inspection_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=True if settings.environment == "development" else False
    )
