"""FastAPI main application entry point."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.core.config import settings
from backoffice.core.exceptions import BackOfficeError
from backoffice.core.logging_config import setup_logging, shutdown_logging
from backoffice.core.middleware import registry, setup_middleware
from backoffice.core.response import create_response

from backoffice.api.audit import router as audit_router
from backoffice.api.auth import router as auth_router
from backoffice.api.internal import router as internal_router
from backoffice.api.menus import router as menus_router
from backoffice.api.roles import router as roles_router
from backoffice.api.uploads import router as uploads_router
from backoffice.api.users import router as users_router

# Configure logging
logger = setup_logging()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    logger.info("app_starting", extra={"environment": settings.ENVIRONMENT, "db_type": settings.DB_TYPE})
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    yield
    logger.info("app_stopping")
    shutdown_logging()


app = FastAPI(
    title=settings.APP_NAME,
    description="Back office API: users, roles, menus and permissions",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)


@app.exception_handler(BackOfficeError)
async def backoffice_exception_handler(request: Request, exc: BackOfficeError):
    if exc.status_code >= 500:
        logger.error("backoffice_error", extra={"error": exc.message, "path": request.url.path})
    return JSONResponse(
        status_code=exc.status_code,
        content=create_response(None, exc.message, exc.status_code),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=create_response(None, "Validation failed", 400, error=errors),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=create_response(None, message, exc.status_code),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", extra={"path": request.url.path})
    error = str(exc) if settings.ENVIRONMENT == "development" else None
    return JSONResponse(
        status_code=500,
        content=create_response(None, "Internal Server Error", 500, error=error),
    )


# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(menus_router, prefix="/api")
app.include_router(uploads_router, prefix="/api")
app.include_router(internal_router, prefix="/api")
app.include_router(audit_router, prefix="/api")

# Uploaded files
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": VERSION,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Quick health check endpoint."""
    return create_response({"status": "ok"})


@app.get("/metrics")
async def metrics():
    """Prometheus exposition; 404 unless METRICS_ENABLED."""
    if not settings.METRICS_ENABLED:
        raise HTTPException(status_code=404, detail="Not Found")
    return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
