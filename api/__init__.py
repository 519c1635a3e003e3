"""HTTP API for the PP-OCR detect service."""
