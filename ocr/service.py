"""OCR inference on images referenced by URL."""

from typing import Callable, List, Optional

from core.config import settings
from core.logging import log
from ingestion.fetcher import fetch_image_bytes
from ingestion.decoder import decode_image
from ocr.pipeline import OCRPipeline


class OCRService:
    """Fetches, decodes and recognizes images with a shared pipeline.

    Every failure inside a request (empty download, undecodable bytes,
    prediction error) yields an empty text list.
    """

    def __init__(self,
                 pipeline: OCRPipeline,
                 fetch_timeout: Optional[float] = None,
                 fetch: Callable[..., bytes] = fetch_image_bytes):
        self.pipeline = pipeline
        self.fetch_timeout = fetch_timeout if fetch_timeout is not None else settings.FETCH_TIMEOUT_SECONDS
        self._fetch = fetch
        self._warned_uninitialized = False

    @property
    def ready(self) -> bool:
        return self.pipeline.initialized

    def infer(self, url: str) -> List[str]:
        """Recognize the text in the image at ``url``.

        Args:
            url: Image URL

        Returns:
            list: Recognized strings in detection order
        """
        if not self.pipeline.initialized:
            if not self._warned_uninitialized:
                log.error("PP-OCR pipeline is not initialized, returning empty results")
                self._warned_uninitialized = True
            return []

        data = self._fetch(url, timeout=self.fetch_timeout)
        if not data:
            log.debug(f"No data fetched from {url}")
            return []

        image = decode_image(data)
        if image is None:
            log.debug(f"Could not decode {len(data)} bytes from {url}")
            return []

        try:
            result = self.pipeline.predict(image)
        except Exception as e:
            log.error(f"Failed to predict: {str(e)}")
            return []

        return [str(text) for text in result.text]
