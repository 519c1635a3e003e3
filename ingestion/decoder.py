"""Image decoding (OpenCV)."""

from typing import Optional
import numpy as np
import cv2
from core.logging import log
from ingestion.fetcher import fetch_image_bytes


def decode_image(data: bytes) -> Optional[np.ndarray]:
    """Decode encoded image bytes into a 3-channel BGR matrix.
    
    Returns:
        np.ndarray or None if the bytes are empty or not an image
    """
    if not data:
        return None
    image = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        return None
    return image


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_image(source: str, timeout: float = 10) -> Optional[np.ndarray]:
    """Load an image from a URL or a local path.
    
    Args:
        source: http(s) URL or filesystem path
        timeout: Fetch timeout for URLs, in seconds
        
    Returns:
        np.ndarray or None if the image could not be loaded
    """
    if is_url(source):
        image = decode_image(fetch_image_bytes(source, timeout=timeout))
    else:
        image = cv2.imread(source, cv2.IMREAD_COLOR)
    
    if image is None:
        log.error(f"Failed to load image: {source}")
    return image
