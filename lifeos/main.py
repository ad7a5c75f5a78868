"""
FastAPI application entry point.

Sets up the app, lifespan (DB connect/disconnect), CORS, logging, error
rendering, and includes API routers. Uploads are processed inside the request:
the client gets the analyzed document and its reminders in the 201 response.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lifeos.api import documents, reminders
from lifeos.config import get_settings
from lifeos.database import close_mongo_connection, connect_to_mongo
from lifeos.exceptions import IngestionError
from lifeos.services.ocr_service import configure_tesseract

# Configure logging - single place for log format and level
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: runs on startup and shutdown.
    Connects to MongoDB, configures Tesseract and prepares the upload directory.
    """
    await connect_to_mongo()
    settings = get_settings()
    if not settings.groq_api_key:
        logger.warning("GROQ_API_KEY is not set; uploads will be stored with default analysis.")
    if not settings.supabase_jwt_secret:
        logger.warning("SUPABASE_JWT_SECRET is not set; only RS256/ES256 tokens can be verified.")
    configure_tesseract(settings.tesseract_cmd)
    upload_path = Path(settings.upload_dir)
    upload_path.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory ready: %s", upload_path.resolve())
    yield
    await close_mongo_connection()


async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": exc.detail},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


def create_application() -> FastAPI:
    """Factory for the FastAPI app. Keeps main.py clean and testable."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Scan personal documents, extract their key dates and get reminders.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(IngestionError, ingestion_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
    app.include_router(reminders.router, prefix="/api/reminders", tags=["reminders"])

    @app.get("/", tags=["service"])
    async def root() -> dict:
        return {"success": True, "message": f"{settings.app_name} is running", "version": app.version}

    @app.get("/health", tags=["service"])
    async def health() -> dict:
        return {
            "success": True,
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
        }

    return app


app = create_application()
