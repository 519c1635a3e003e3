"""Text detection endpoint."""

from typing import List
from fastapi import APIRouter, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from core.logging import log

router = APIRouter(tags=["detect"])


class DetectRequest(BaseModel):
    """Request model for text detection."""
    link: str


class DetectResponse(BaseModel):
    """Response model for text detection."""
    texts: List[str]
    ret: int = 1


@router.post("/detect")
async def detect(request: Request):
    """Recognize the text in the image at ``link``.
    
    Body: ``{"link": "<image url>"}``
    
    Returns:
        200 with ``{"texts": [...], "ret": 1}``, or 400 with an empty body
        if the request body is not a JSON object with a string ``link``
    """
    body = await request.body()
    try:
        payload = DetectRequest.model_validate_json(body)
    except ValidationError as e:
        log.warning(f"Rejected /detect request: {e.error_count()} validation error(s)")
        return Response(status_code=400)
    
    service = request.app.state.ocr_service
    # Fetch and inference block, so run them on a worker thread
    texts = await run_in_threadpool(service.infer, payload.link)
    log.info(f"Detected {len(texts)} text region(s) in {payload.link}")
    
    return JSONResponse(content=DetectResponse(texts=texts).model_dump())
