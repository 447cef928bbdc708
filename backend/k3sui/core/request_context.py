"""
Request-scoped context variables.

The request middleware sets ``request_id_var`` so log records emitted while
serving a request carry the same id as the ``X-Request-ID`` response header.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Optional


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def current_request_id() -> Optional[str]:
    return request_id_var.get()
