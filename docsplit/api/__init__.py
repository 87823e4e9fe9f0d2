"""API module for FastAPI dependencies.

This module contains:
- deps: FastAPI dependency injection functions (handler context, tool dispatch,
  error sanitization)
"""

from .deps import (
    execute_tool,
    format_validation_error,
    get_handler_context,
    get_request_id,
    sanitize_error_message,
)

__all__ = [
    "execute_tool",
    "format_validation_error",
    "get_handler_context",
    "get_request_id",
    "sanitize_error_message",
]
