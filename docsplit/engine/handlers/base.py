"""Base infrastructure for tool handlers.

This module provides the common types and utilities used by all handler modules.
Each handler receives a HandlerContext with shared state and returns a ToolResult.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from ...config import settings
from ..core.tokens import count_tokens

if TYPE_CHECKING:
    from ...models import ToolResult


def default_option_values() -> dict[str, Any]:
    """Run option defaults taken from the service settings."""
    return {
        "split_threshold": settings.split_threshold,
        "file_token_ceiling": settings.file_token_ceiling,
        "on_collision": settings.on_collision,
    }


@dataclass
class HandlerContext:
    """Context object passed to all handlers.

    Contains shared state that handlers need to operate, so handlers stay
    independent of the HTTP and MCP surfaces.
    """

    # Materialize runs may only write below this directory
    output_root: Path

    # Defaults merged under per-request options
    option_defaults: dict[str, Any] = field(default_factory=default_option_values)

    # Tracing
    request_id: str | None = None


# Type alias for handler functions
HandlerFunc = Callable[
    [dict[str, Any], HandlerContext],
    Coroutine[Any, Any, "ToolResult"],
]


def count_result_tokens(data: Any) -> int:
    """Token estimate of a result payload as it is sent to the client."""
    return count_tokens(json.dumps(data, default=str))
