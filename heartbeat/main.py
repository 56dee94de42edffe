from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match
import time
import uuid
from heartbeat.core.config import settings
from heartbeat.core.logging import logger
from heartbeat.core.exceptions import (
    AdminAccessRedirect,
    admin_redirect_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from heartbeat.api.v1.api import api_router
from heartbeat.database.database import init_db
from heartbeat.services.realtime import realtime_hub

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Blood donation coordination API",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

# Add exception handlers
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(AdminAccessRedirect, admin_redirect_handler)
app.add_exception_handler(Exception, general_exception_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    request_id = str(uuid.uuid4())

    request.state.request_id = request_id

    logger.info(
        f"Request: {request.method} {request.url.path}",
        extra={"request_id": request_id}
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"Response: {response.status_code} - {process_time:.3f}s",
        extra={"request_id": request_id}
    )

    response.headers["X-Request-ID"] = request_id

    return response

# Include API routes
app.include_router(api_router, prefix="/api/v1")

@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    """Close realtime subscriptions so open sockets end their loops."""
    logger.info("Application shutting down")
    realtime_hub.clear()

@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT,
        "docs": "/docs" if settings.DEBUG else "disabled"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "realtime_subscriptions": realtime_hub.subscription_count(),
    }

# Registered last so it only sees paths nothing else matched
@app.get("/{full_path:path}", include_in_schema=False)
async def unknown_path(full_path: str, request: Request):
    """Send unknown page paths home; API paths get a normal error instead."""
    if full_path == "api" or full_path.startswith("api/"):
        for route in request.app.router.routes:
            match, _ = route.matches(request.scope)
            if match == Match.PARTIAL:
                raise HTTPException(status_code=405, detail="Method Not Allowed")
        raise HTTPException(status_code=404, detail="Not Found")
    return RedirectResponse(url="/")
