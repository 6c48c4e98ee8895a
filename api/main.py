"""
FastAPI application initialization
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from api.routes import builds, exports, health, uploads
from core.config import settings
from core.exceptions import ETLException, IngestionError, LoadError, MergeError, UploadNotFoundError
from core.logging import setup_logging
from schemas.api import ErrorResponse
import logging
from api.middleware import RequestContextMiddleware
from ingestion.scheduler import BuildScheduler

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Institution Data Service",
    description="Upload, merge and export service for the GI Bill institution data",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Initialize Scheduler
scheduler = BuildScheduler()


# Include routers
app.include_router(health.router)
app.include_router(uploads.router)
app.include_router(builds.router)
app.include_router(exports.router)


def _error_response(status_code: int, exc: ETLException) -> JSONResponse:
    body = ErrorResponse(**exc.to_dict())
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(UploadNotFoundError)
async def upload_not_found_handler(request: Request, exc: UploadNotFoundError):
    return _error_response(404, exc)


@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError):
    logger.warning(f"Upload rejected: {exc}")
    return _error_response(422, exc)


@app.exception_handler(MergeError)
async def merge_error_handler(request: Request, exc: MergeError):
    logger.error(f"Build failed: {exc}")
    return _error_response(500, exc)


@app.exception_handler(LoadError)
async def load_error_handler(request: Request, exc: LoadError):
    logger.error(f"Push failed: {exc}")
    return _error_response(502, exc)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Institution Data Service")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

    # Start Scheduler
    scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Institution Data Service")
    scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Institution Data Service",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "uploads": "/uploads/{source_type}",
            "builds": "/builds",
            "export": "/exports/institutions.csv",
            "push": "/exports/push"
        }
    }
