"""MCP Streamable HTTP transport (JSON-RPC 2.0 over POST /mcp).

Supports initialize, tools/list, tools/call and ping, single or batched.
Engine errors are returned as server errors with the error dict in
``error.data``; tool results are returned as a JSON text content block.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import __version__
from .api.deps import (
    execute_tool,
    format_validation_error,
    get_handler_context,
    sanitize_error_message,
)
from .engine.errors import DocsplitError
from .engine.handlers import HandlerContext
from .mcp import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    TOOL_DEFINITIONS,
    jsonrpc_error,
    jsonrpc_response,
    tool_call_result,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["MCP Transport"])


@router.post("/mcp")
async def mcp_transport_endpoint(
    request: Request,
    ctx: HandlerContext = Depends(get_handler_context),
):
    """
    MCP Streamable HTTP endpoint (JSON-RPC format).

    Config example:
    ```json
    {"mcpServers": {"docsplit": {"type": "http", "url": "http://localhost:8000/mcp"}}}
    ```
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(jsonrpc_error(None, PARSE_ERROR, "Parse error"), status_code=400)

    # Handle batch requests
    if isinstance(body, list):
        responses = []
        for req in body:
            resp = await handle_request(req, ctx)
            if resp:  # Skip notifications (no id)
                responses.append(resp)
        return JSONResponse(responses) if responses else Response(status_code=204)

    # Handle single request
    response = await handle_request(body, ctx)
    return JSONResponse(response) if response else Response(status_code=204)


async def handle_request(body: Any, ctx: HandlerContext) -> dict | None:
    """Handle a single JSON-RPC request."""
    if not isinstance(body, dict) or body.get("jsonrpc") != "2.0" or "method" not in body:
        request_id = body.get("id") if isinstance(body, dict) else None
        return jsonrpc_error(request_id, INVALID_REQUEST, "Invalid Request")

    method = body.get("method")
    id = body.get("id")
    params = body.get("params") or {}

    if id is None:  # Notification - no response
        return None

    if method == "initialize":
        return jsonrpc_response(
            id,
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "serverInfo": {"name": "docsplit", "version": __version__},
                "capabilities": {"tools": {}},
            },
        )
    elif method == "tools/list":
        return jsonrpc_response(id, {"tools": TOOL_DEFINITIONS})
    elif method == "tools/call":
        return await _handle_call_tool(id, params, ctx)
    elif method == "ping":
        return jsonrpc_response(id, {})
    else:
        return jsonrpc_error(id, METHOD_NOT_FOUND, f"Method not found: {method}")


async def _handle_call_tool(id: Any, params: dict, ctx: HandlerContext) -> dict:
    """Handle MCP tools/call request."""
    tool_name = params.get("name")
    arguments = params.get("arguments") or {}

    try:
        result = await execute_tool(tool_name, arguments, ctx)
    except DocsplitError as e:
        logger.info(f"{tool_name} rejected: {e}")
        return jsonrpc_error(id, SERVER_ERROR, str(e), data=e.to_dict())
    except ValidationError as e:
        return jsonrpc_error(id, INVALID_PARAMS, format_validation_error(e))
    except ValueError as e:
        message = sanitize_error_message(e)
        return jsonrpc_error(id, INVALID_PARAMS, message)
    except Exception as e:
        return jsonrpc_error(id, INTERNAL_ERROR, sanitize_error_message(e))

    return jsonrpc_response(id, tool_call_result(result.data))
