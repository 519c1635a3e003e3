"""Unit tests for image fetching and decoding."""

import socket
import threading
import time
from unittest import mock

import pytest
import requests
from urllib3.exceptions import ProtocolError

from ingestion import fetcher
from ingestion.decoder import decode_image, load_image
from ingestion.fetcher import fetch_image_bytes


def fake_response(chunks, status_code=200):
    response = mock.MagicMock()
    response.ok = status_code < 400
    response.status_code = status_code
    response.raw.connection = None
    response.raw.read1.side_effect = list(chunks) + [b""]
    response.__enter__.return_value = response
    return response


@pytest.fixture
def trickling_server(monkeypatch):
    """Local HTTP server announcing a large body, then sending one byte every 0.25s."""
    for name in ("HTTP_PROXY", "http_proxy", "ALL_PROXY", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]
    stop = threading.Event()
    
    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        with conn:
            conn.recv(65536)
            conn.sendall(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: image/jpeg\r\n"
                b"Content-Length: 100000\r\n"
                b"\r\n"
            )
            for _ in range(40):
                if stop.is_set():
                    break
                try:
                    conn.sendall(b"x")
                except OSError:
                    break
                time.sleep(0.25)
    
    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{port}/slow.jpg"
    stop.set()
    listener.close()
    thread.join(timeout=5)


class TestFetchImageBytes:
    """Test streaming download."""
    
    def test_fragmented_body_is_reassembled(self):
        chunks = [b"\x89PNG", b"abc", b"def"]
        with mock.patch.object(fetcher.requests, "get", return_value=fake_response(chunks)) as get:
            data = fetch_image_bytes("http://host/receipt.jpg")
        
        assert data == b"\x89PNGabcdef"
        get.assert_called_once_with("http://host/receipt.jpg", stream=True, timeout=(10, 10))
    
    def test_transport_error_returns_empty(self):
        error = requests.ConnectionError("connection refused")
        with mock.patch.object(fetcher.requests, "get", side_effect=error):
            assert fetch_image_bytes("http://host/nonexistent") == b""
    
    def test_deadline_returns_partial_body(self):
        """Bytes received before the deadline are kept."""
        chunks = [b"aaa", b"bbb", b"ccc"]
        clock = iter([0.0, 1.0, 2.0, 11.0] + [12.0] * 10)
        with mock.patch.object(fetcher.requests, "get", return_value=fake_response(chunks)), \
                mock.patch.object(fetcher.time, "monotonic", side_effect=lambda: next(clock)):
            data = fetch_image_bytes("http://host/slow.jpg", timeout=10)
        
        assert data == b"aaabbb"
    
    def test_broken_transfer_keeps_received_bytes(self):
        """A connection dropped mid-body returns what arrived before the drop."""
        response = fake_response([])
        response.raw.read1.side_effect = [b"abc", ProtocolError("Connection broken")]
        with mock.patch.object(fetcher.requests, "get", return_value=response):
            assert fetch_image_bytes("http://host/receipt.jpg") == b"abc"
    
    def test_request_error_mid_body_keeps_received_bytes(self):
        response = fake_response([])
        response.raw.read1.side_effect = [b"abc", requests.ConnectionError("reset by peer")]
        with mock.patch.object(fetcher.requests, "get", return_value=response):
            assert fetch_image_bytes("http://host/receipt.jpg") == b"abc"
    
    def test_error_status_body_is_returned(self):
        chunks = [b"<html>not found</html>"]
        with mock.patch.object(fetcher.requests, "get", return_value=fake_response(chunks, 404)):
            assert fetch_image_bytes("http://host/missing.jpg") == b"<html>not found</html>"
    
    def test_slow_server_bounded_by_timeout(self, trickling_server):
        """A server trickling single bytes cannot hold the fetch past its timeout."""
        started = time.monotonic()
        data = fetch_image_bytes(trickling_server, timeout=2)
        elapsed = time.monotonic() - started
        
        assert elapsed < 3.5, f"fetch took {elapsed:.2f}s with timeout=2"
        assert 0 < len(data) < 100000
        assert set(data) == {ord("x")}


class TestDecodeImage:
    """Test image decoding."""
    
    def test_decode_png(self, png_bytes):
        image = decode_image(png_bytes)
        assert image is not None
        assert image.shape == (32, 64, 3)
    
    def test_empty_bytes(self):
        assert decode_image(b"") is None
    
    def test_non_image_bytes(self):
        assert decode_image(b"definitely not an image") is None


class TestLoadImage:
    """Test loading images for one-shot runs."""
    
    def test_load_local_file(self, tmp_path, png_bytes):
        path = tmp_path / "12.png"
        path.write_bytes(png_bytes)
        image = load_image(str(path))
        assert image.shape == (32, 64, 3)
    
    def test_missing_local_file(self, tmp_path):
        assert load_image(str(tmp_path / "missing.jpg")) is None
    
    def test_load_url(self, png_bytes):
        with mock.patch("ingestion.decoder.fetch_image_bytes", return_value=png_bytes) as fetch:
            image = load_image("https://host/12.png", timeout=3)
        fetch.assert_called_once_with("https://host/12.png", timeout=3)
        assert image.shape == (32, 64, 3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
