"""Image ingestion: fetching and decoding."""

from ingestion.fetcher import fetch_image_bytes
from ingestion.decoder import decode_image, load_image

__all__ = [
    'fetch_image_bytes',
    'decode_image',
    'load_image',
]
