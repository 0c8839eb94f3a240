"""
FastAPI application entry point for the job board API.

This is the main app that:
- Initializes FastAPI with CORS
- Registers all API routers and the realtime websocket
- Converts service-layer errors into JSON responses
- Sets up database lifecycle and serves uploaded files
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from jobboard.config import settings
from jobboard.database import engine, init_db
from jobboard.services.errors import JobBoardError
from jobboard.services.storage import UPLOADS_ROUTE
# Import API routers
from jobboard.api import admin, applications, auth, jobs, realtime, recruiter, student

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    On startup: Create tables when configured to
    On shutdown: Close database connections gracefully
    """
    # Startup
    logger.info("Starting job board API...")
    logger.info(f"Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else settings.database_url}")
    logger.info(f"Debug mode: {settings.debug}")

    if settings.create_tables_on_startup:
        await init_db()

    yield

    # Shutdown
    logger.info("Shutting down job board API...")
    await engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="Job Board API",
    description="Jobs, applications and moderation for students and recruiters",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
# Set ALLOWED_ORIGINS environment variable with comma-separated domains
allowed_origins = [
    "http://localhost:3000",  # Local development
]

if settings.allowed_origins:
    allowed_origins.extend(origin.strip() for origin in settings.allowed_origins.split(',') if origin.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(JobBoardError)
async def job_board_error_handler(request: Request, exc: JobBoardError):
    """Service-layer errors become `{"detail", "error"}` responses."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "Job Board API",
        "version": "1.0.0",
    }


# Root endpoint
@app.get("/")
async def root():
    """API root with basic info."""
    return {
        "message": "Job Board API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# Register API routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(student.router, prefix="/api/student", tags=["student"])
app.include_router(recruiter.router, prefix="/api/recruiter", tags=["recruiter"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(realtime.router, tags=["realtime"])

# Uploaded files (LocalBlobStore)
app.mount(UPLOADS_ROUTE, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")
