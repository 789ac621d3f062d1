"""
Main FastAPI application
Learning roadmap progress tracking, sessions and analytics
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import time

from roadmap_tracker.config import settings
from roadmap_tracker.database import Database
from roadmap_tracker.errors import RoadmapError
from roadmap_tracker.api import analytics, auth, bookmarks, notes, progress, users
from roadmap_tracker.services.session_store import SessionStore
from roadmap_tracker.utils.cache import CacheService
from roadmap_tracker.utils.rate_limiter import RateLimiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

UNLIMITED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_app(
    database: Optional[Database] = None,
    cache: Optional[CacheService] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the application with its database, cache and rate limiter

    Tests pass their own in-memory database and a disabled cache.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Backend for tracking progress through a learning roadmap",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.database = database or Database(settings.DATABASE_URL, echo=settings.DEBUG)
    app.state.cache = cache or CacheService(settings.REDIS_URL)
    app.state.rate_limiter = rate_limiter or RateLimiter(
        requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
        requests_per_hour=settings.RATE_LIMIT_PER_HOUR,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting middleware
    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        """Apply rate limiting to all requests except health and docs"""
        if request.url.path in UNLIMITED_PATHS:
            return await call_next(request)

        try:
            await request.app.state.rate_limiter.check_rate_limit(request)
        except HTTPException as e:
            return JSONResponse(
                status_code=e.status_code,
                content={"success": False, "message": e.detail}
            )

        return await call_next(request)

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing"""
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Duration: {duration:.3f}s"
        )
        return response

    @app.exception_handler(RoadmapError)
    async def roadmap_error_handler(request: Request, exc: RoadmapError):
        """Domain errors carry their own status code"""
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report the first invalid field as a 400"""
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": _validation_message(exc)}
        )

    # HTTP exception handler
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Format HTTP exceptions consistently"""
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail}
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors gracefully"""
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

        content = {
            "success": False,
            "message": "An unexpected error occurred. Please try again later.",
        }
        if settings.DEBUG:
            content["detail"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for monitoring

        Returns service status and whether the cache is connected
        """
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "cache": "connected" if app.state.cache.enabled else "disabled",
            "timestamp": time.time()
        }

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "Learning Roadmap Tracker API",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    # Include routers
    app.include_router(auth.router)
    app.include_router(progress.router)
    app.include_router(analytics.router)
    app.include_router(users.router)
    app.include_router(notes.router)
    app.include_router(bookmarks.router)

    return app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and purge expired sessions on startup, dispose the engine on shutdown"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        app.state.database.create_all()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    db = app.state.database.session()
    try:
        SessionStore(db).cleanup_old_sessions(settings.SESSION_RETENTION_DAYS)
    finally:
        db.close()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    app.state.database.dispose()


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "roadmap_tracker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
