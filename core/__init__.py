"""Core modules for the PP-OCR detect service."""
