"""Middleware for the FastAPI application.

This module provides ASGI middleware for:
- Request ids and security headers
"""

from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "SecurityHeadersMiddleware",
]
