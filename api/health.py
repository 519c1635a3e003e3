"""Health check endpoint."""

from typing import Optional
from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    pipeline_initialized: bool
    device: Optional[str] = None
    backend: Optional[str] = None


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint.
    
    Returns:
        HealthResponse: "healthy" when the OCR pipeline is initialized, otherwise "degraded"
    """
    pipeline = request.app.state.ocr_service.pipeline
    initialized = pipeline.initialized
    backend = pipeline.backend
    
    return HealthResponse(
        status="healthy" if initialized else "degraded",
        pipeline_initialized=initialized,
        device=backend.device.value if backend.device else None,
        backend=backend.backend.value if backend.backend else None,
    )
