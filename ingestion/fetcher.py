"""Image fetching over HTTP."""

import time
import requests
from urllib3.exceptions import HTTPError as TransportError
from core.logging import log

CHUNK_SIZE = 8192


def _limit_socket_timeout(response: requests.Response, seconds: float):
    """Cap the next blocking read on the response's socket to ``seconds``."""
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is not None:
        sock.settimeout(seconds)


def fetch_image_bytes(url: str, timeout: float = 10) -> bytes:
    """Download the body at ``url`` into memory.

    The body is streamed and appended piece by piece, since intermediaries
    are free to fragment it. ``timeout`` bounds the whole transfer: every
    read returns as soon as any bytes are available and may not block past
    the deadline. Once the deadline passes, or the transfer breaks off,
    whatever arrived so far is returned.

    Args:
        url: Image URL
        timeout: Wall-clock limit for the transfer, in seconds

    Returns:
        bytes: Received body, empty if nothing arrived
    """
    deadline = time.monotonic() + timeout
    buffer = bytearray()

    try:
        with requests.get(url, stream=True, timeout=(timeout, timeout)) as response:
            if not response.ok:
                log.debug(f"GET {url} returned HTTP {response.status_code}")
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    log.warning(f"Timed out fetching {url} after {timeout}s ({len(buffer)} bytes received)")
                    break
                _limit_socket_timeout(response, remaining)
                chunk = response.raw.read1(CHUNK_SIZE, decode_content=True)
                if not chunk:
                    break
                buffer.extend(chunk)
    except (requests.RequestException, TransportError, OSError) as e:
        log.warning(f"Failed to fetch {url}: {str(e)} ({len(buffer)} bytes received)")

    return bytes(buffer)
