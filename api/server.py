"""FastAPI application serving the OCR pipeline."""

from contextlib import asynccontextmanager
from fastapi import FastAPI
import uvicorn
from core.config import settings
from core.logging import log
from ocr.service import OCRService
from api import detect, health


def create_app(ocr_service: OCRService) -> FastAPI:
    """Create the application around an already built OCR service."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler for startup and shutdown."""
        log.info("PP-OCR detect service starting up...")
        if not ocr_service.ready:
            log.error("PP-OCR pipeline is not initialized; every request will return empty texts")
        yield
        log.info("PP-OCR detect service shutting down...")

    app = FastAPI(
        title="PP-OCR Detect Service",
        description="Text recognition for images referenced by URL",
        version="1.0.0",
        lifespan=lifespan,
    )
    # Built once, shared by all requests
    app.state.ocr_service = ocr_service

    app.include_router(detect.router)
    app.include_router(health.router)
    return app


def serve(ocr_service: OCRService, host: str = None, port: int = None):
    """Serve the OCR service until the process is stopped."""
    host = host or settings.API_HOST
    port = port or settings.API_PORT
    log.info(f"API running on {host}:{port}")
    uvicorn.run(
        create_app(ocr_service),
        host=host,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
    )
