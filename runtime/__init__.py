"""Inference runtime configuration."""

from runtime.backend import (
    Backend,
    BackendOption,
    Device,
    DynamicShapeProfile,
    select_backend,
)

__all__ = [
    'Backend',
    'BackendOption',
    'Device',
    'DynamicShapeProfile',
    'select_backend',
]
