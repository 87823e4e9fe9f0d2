"""Tool handlers for the restructuring engine.

Each handler is a standalone async function that takes:
- params: dict[str, Any] - Tool parameters from MCP call
- ctx: HandlerContext - Shared context (output root, default options)

And returns:
- ToolResult with data, input_tokens, output_tokens
"""

from ...models import ToolName
from .base import HandlerContext, HandlerFunc, count_result_tokens, default_option_values
from .restructure import (
    handle_analyze,
    handle_materialize,
    handle_sections,
    resolve_output_dir,
    to_document,
)

# Dispatch table used by the HTTP and MCP surfaces
TOOL_HANDLERS: dict[ToolName, HandlerFunc] = {
    ToolName.DOCSPLIT_SECTIONS: handle_sections,
    ToolName.DOCSPLIT_ANALYZE: handle_analyze,
    ToolName.DOCSPLIT_MATERIALIZE: handle_materialize,
}

__all__ = [
    # Base
    "HandlerContext",
    "HandlerFunc",
    "count_result_tokens",
    "default_option_values",
    # Restructure handlers
    "handle_sections",
    "handle_analyze",
    "handle_materialize",
    "resolve_output_dir",
    "to_document",
    # Dispatch
    "TOOL_HANDLERS",
]
