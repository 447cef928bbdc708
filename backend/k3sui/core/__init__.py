"""
Core infrastructure: logging setup and request context.
"""
from .logging import setup_logging
from .request_context import current_request_id, request_id_var

__all__ = [
    "setup_logging",
    "current_request_id",
    "request_id_var",
]
