"""FastAPI dependency injection functions.

This module contains shared dependencies for API endpoints:
- Handler context construction
- Tool dispatch
- Error sanitization
"""

import logging
from pathlib import Path

from fastapi import Request as FastAPIRequest
from pydantic import ValidationError

from ..config import settings
from ..engine.errors import DocsplitError
from ..engine.handlers import TOOL_HANDLERS, HandlerContext
from ..models import ToolName, ToolResult

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred processing your request. Please try again."


def format_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into one 'Invalid parameter' line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "params"
        message = item.get("msg", "invalid value").removeprefix("Value error, ")
        parts.append(f"{location}: {message}")
    return "Invalid parameter: " + "; ".join(parts)


def sanitize_error_message(error: Exception) -> str:
    """
    Sanitize error messages to prevent information disclosure.

    Engine errors and parameter errors are returned verbatim; anything else
    is logged and replaced by a generic message.
    """
    if isinstance(error, DocsplitError):
        return str(error)
    if isinstance(error, ValidationError):
        return format_validation_error(error)

    error_str = str(error)

    # Known safe error patterns that can be returned to client
    safe_patterns = [
        "Invalid parameter",
        "Unknown tool",
    ]

    for pattern in safe_patterns:
        if pattern.lower() in error_str.lower():
            return error_str

    # Log the actual error for debugging
    logger.error(f"Tool execution error: {error}", exc_info=error)

    # Return generic message for unknown errors
    return GENERIC_ERROR_MESSAGE


def get_request_id(request: FastAPIRequest) -> str | None:
    """Request id assigned by SecurityHeadersMiddleware, if any."""
    return getattr(request.state, "request_id", None)


async def get_handler_context(request: FastAPIRequest) -> HandlerContext:
    """Build the per-request handler context."""
    return HandlerContext(
        output_root=Path(settings.output_root),
        request_id=get_request_id(request),
    )


async def execute_tool(tool: ToolName | str, params: dict, ctx: HandlerContext) -> ToolResult:
    """Dispatch a tool call to its handler.

    Raises:
        ValueError: If the tool name is unknown
    """
    try:
        tool_name = ToolName(tool)
    except ValueError:
        raise ValueError(f"Unknown tool: {tool}") from None
    handler = TOOL_HANDLERS[tool_name]
    logger.info(f"Executing {tool_name.value} (request {ctx.request_id})")
    return await handler(params, ctx)
