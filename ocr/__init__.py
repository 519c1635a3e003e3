"""OCR module.

This module provides:
- PP-OCR pipeline builder (detector, classifier, recognizer)
- OCR service running the pipeline on images fetched by URL
"""

from ocr.pipeline import OCRPipeline, PipelineBuildError, PipelineParameters, build_pipeline
from ocr.service import OCRService

__all__ = [
    'OCRPipeline',
    'PipelineBuildError',
    'PipelineParameters',
    'build_pipeline',
    'OCRService',
]
