"""Response models for the docsplit HTTP and MCP surfaces."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ToolResult(BaseModel):
    """Result of executing a docsplit tool handler."""

    data: dict[str, Any] = Field(default_factory=dict, description="Tool result payload")
    input_tokens: int = Field(default=0, ge=0, description="Tokens in the submitted document")
    output_tokens: int = Field(default=0, ge=0, description="Tokens in the returned payload")


class UsageInfo(BaseModel):
    """Token usage and latency for a single tool call."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    latency_ms: int = Field(default=0, ge=0)


class MCPResponse(BaseModel):
    """Response of POST /v1/mcp."""

    success: bool = Field(..., description="Whether the tool executed successfully")
    result: dict[str, Any] | None = Field(default=None, description="Tool result payload")
    error: str | None = Field(default=None, description="Error message if failed")
    error_details: dict[str, Any] | None = Field(
        default=None, description="Violated rule and offending section/node for engine errors"
    )
    usage: UsageInfo = Field(default_factory=UsageInfo)


class HealthResponse(BaseModel):
    """Liveness check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="docsplit version")
    timestamp: datetime = Field(..., description="Server time")
