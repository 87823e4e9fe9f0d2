"""JSON-RPC 2.0 envelopes for the MCP transport.

See: https://www.jsonrpc.org/specification
"""

import json
from typing import Any

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000  # Engine errors (rule and offending section/node in ``data``)

MCP_PROTOCOL_VERSION = "2024-11-05"


def jsonrpc_response(id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "id": id, "result": result}


def jsonrpc_error(id: Any, code: int, message: str, data: Any = None) -> dict:
    """Create a JSON-RPC 2.0 error response.

    Args:
        id: Request ID (None for parse errors)
        code: One of the error codes above
        message: Human-readable error message
        data: Optional structured detail, omitted when None
    """
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": id, "error": error}


def tool_call_result(data: dict[str, Any]) -> dict[str, Any]:
    """MCP tools/call result: the payload as a JSON text block plus structured content."""
    return {
        "content": [{"type": "text", "text": json.dumps(data, indent=2, default=str)}],
        "structuredContent": data,
        "isError": False,
    }
