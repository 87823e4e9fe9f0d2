"""FastAPI MCP Server for docsplit."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import __version__
from .api.deps import (
    GENERIC_ERROR_MESSAGE,
    execute_tool,
    format_validation_error,
    get_handler_context,
    get_request_id,
    sanitize_error_message,
)
from .config import settings
from .engine.errors import DocsplitError
from .engine.handlers import HandlerContext
from .logging_config import configure_logging
from .mcp_transport import router as mcp_router
from .middleware import SecurityHeadersMiddleware
from .models import HealthResponse, MCPRequest, MCPResponse, UsageInfo

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    configure_logging(settings.log_level)
    logger.info(f"Starting docsplit server v{__version__} (output root: {settings.output_root})")

    # Validate CORS configuration in production
    if not settings.debug and settings.cors_allowed_origins == "*":
        logger.warning(
            "SECURITY WARNING: CORS is configured to allow all origins ('*'). "
            "Set DOCSPLIT_CORS_ALLOWED_ORIGINS to specific domains in production."
        )

    yield
    # Shutdown
    logger.info("docsplit server stopped")


app = FastAPI(
    title="docsplit",
    description="Restructures long documents and repositories into navigable, cross-referenced files",
    version=__version__,
    lifespan=lifespan,
)

# Request id and security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware - use configured origins instead of wildcard
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_origins_list != ["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
)

# Mount MCP Streamable HTTP transport
app.include_router(mcp_router)


# ============ EXCEPTION HANDLERS ============


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Error envelope shared by every handler; carries the request id for tracing."""
    content: dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        content["error_details"] = details
    content["request_id"] = get_request_id(request)
    content["usage"] = {"latency_ms": 0}
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(DocsplitError)
async def docsplit_exception_handler(request: Request, exc: DocsplitError):
    """Engine errors carry the violated rule; return them verbatim."""
    return _error_response(request, 422, str(exc), exc.to_dict())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Unexpected failures are logged with the traceback and never echoed."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _error_response(request, 500, GENERIC_ERROR_MESSAGE)


# ============ HEALTH ENDPOINTS ============


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint (lightweight liveness check)."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
    )


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with API info."""
    return {
        "name": "docsplit",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "mcp": "/mcp",
    }


# ============ MCP ENDPOINTS ============


@app.post("/v1/mcp", response_model=MCPResponse, tags=["MCP"])
async def mcp_endpoint(
    request: MCPRequest,
    ctx: HandlerContext = Depends(get_handler_context),
):
    """
    Execute a docsplit tool.

    Args:
        request: The MCP request with tool and parameters
        ctx: Handler context (output root, default options, request id)

    Returns:
        MCPResponse with result or error. Engine and parameter errors are
        returned with status 422.
    """
    start_time = time.perf_counter()

    try:
        result = await execute_tool(request.tool, request.params, ctx)
    except (DocsplitError, ValueError) as e:
        latency_ms = int((time.perf_counter() - start_time) * 1000)
        if isinstance(e, DocsplitError):
            error, details = str(e), e.to_dict()
        elif isinstance(e, ValidationError):
            error, details = format_validation_error(e), None
        else:
            error, details = sanitize_error_message(e), None
        logger.info(f"{request.tool.value} rejected: {error}")
        response = MCPResponse(
            success=False,
            error=error,
            error_details=details,
            usage=UsageInfo(latency_ms=latency_ms),
        )
        return JSONResponse(status_code=422, content=response.model_dump(mode="json"))

    latency_ms = int((time.perf_counter() - start_time) * 1000)
    return MCPResponse(
        success=True,
        result=result.data,
        usage=UsageInfo(
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            latency_ms=latency_ms,
        ),
    )


# ============ MAIN ============


def main():
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "docsplit.server:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
