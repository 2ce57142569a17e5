"""
Gallery Service - FastAPI Application
Image gallery backend: accounts, image catalog and user profiles
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import os
import time
import traceback

from gallery_service import __version__
from gallery_service.routes import auth, health, images, users
from gallery_service.services.container import ServiceContainer
from gallery_service.utils.config import get_app_config, validate_configuration
from gallery_service.utils.exceptions import GalleryError
from gallery_service.utils.logger import get_request_logger, setup_logging

logger = logging.getLogger(__name__)

app_config = get_app_config()
request_logger = get_request_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    setup_logging(
        config_path=app_config.log_config_path,
        log_level=app_config.log_level,
        log_format=app_config.log_format,
        environment=app_config.environment
    )
    logger.info("Gallery Service starting up...")

    validate_configuration()

    # Tests may install their own container
    services = getattr(app.state, "services", None)
    owns_services = services is None
    if owns_services:
        services = ServiceContainer.create(app_config=app_config)
        app.state.services = services
        await services.start()

    logger.info("Gallery Service startup complete")

    yield

    logger.info("Gallery Service shutting down...")
    if owns_services:
        await services.stop()
        app.state.services = None


# Create FastAPI application
app = FastAPI(
    title="Gallery Service",
    description="Image gallery backend: accounts, image catalog and user profiles",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if app_config.is_production() else app_config.docs_url,
    openapi_url=None if app_config.is_production() else app_config.openapi_url
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=app_config.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    request_logger.log_request(
        method=request.method,
        url=request.url.path,
        status_code=response.status_code,
        response_time=time.perf_counter() - start,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )
    return response


def error_response(request: Request, status_code: int, message, **extra) -> JSONResponse:
    """Uniform error envelope"""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "status_code": status_code,
            "message": message,
            "path": request.url.path,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **extra,
        }
    )


@app.exception_handler(GalleryError)
async def gallery_error_handler(request: Request, exc: GalleryError):
    return error_response(request, exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Custom HTTP exception handler"""
    return error_response(request, exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation failed", details=details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    extra = {}
    if not app_config.is_production():
        extra["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", **extra)


# Include routers
app.include_router(health.router, prefix=app_config.api_prefix, tags=["Health"])
app.include_router(auth.router, prefix=f"{app_config.api_prefix}/auth", tags=["Authentication"])
app.include_router(images.router, prefix=f"{app_config.api_prefix}/images", tags=["Images"])
app.include_router(users.router, prefix=f"{app_config.api_prefix}/users", tags=["Users"])


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": app_config.service_name,
        "version": __version__,
        "description": "Image gallery backend",
        "docs": app_config.docs_url
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gallery_service.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=not app_config.is_production()
    )
