"""Tests for the HTTP and MCP surfaces."""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from docsplit import __version__
from docsplit.server import app


@pytest_asyncio.fixture
async def client(output_root):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def rpc(method, params=None, id=1):
    body = {"jsonrpc": "2.0", "id": id, "method": method}
    if params is not None:
        body["params"] = params
    return body


class TestHealth:
    """Tests for liveness endpoints."""

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__

    async def test_root(self, client):
        response = await client.get("/")
        assert response.json()["mcp"] == "/mcp"

    async def test_request_id_header(self, client):
        response = await client.get("/health", headers={"X-Request-Id": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"
        assert response.headers["x-content-type-options"] == "nosniff"
        generated = await client.get("/health")
        assert generated.headers["x-request-id"]


class TestToolEndpoint:
    """Tests for POST /v1/mcp."""

    async def test_analyze(self, client, five_stage_document):
        response = await client.post(
            "/v1/mcp", json={"tool": "docsplit_analyze", "params": {"text": five_stage_document}}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert len(data["result"]["nodes"]) == 5
        assert data["usage"]["input_tokens"] > 0

    async def test_cycle_is_422_with_rule(self, client, cyclic_document):
        response = await client.post(
            "/v1/mcp", json={"tool": "docsplit_analyze", "params": {"text": cyclic_document}}
        )
        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error_details"]["rule"] == "dependency-cycle"
        assert data["error_details"]["error"] == "PlanningError"

    async def test_invalid_params_are_422(self, client):
        response = await client.post("/v1/mcp", json={"tool": "docsplit_sections", "params": {}})
        assert response.status_code == 422
        assert response.json()["error"].startswith("Invalid parameter")

    async def test_materialize(self, client, five_stage_document, output_root):
        response = await client.post(
            "/v1/mcp",
            json={
                "tool": "docsplit_materialize",
                "params": {"text": five_stage_document, "output_dir": "out"},
            },
        )
        assert response.status_code == 200
        assert (output_root / "out" / "INDEX.md").is_file()


class TestMCPTransport:
    """Tests for JSON-RPC over POST /mcp."""

    async def test_initialize(self, client):
        response = await client.post("/mcp", json=rpc("initialize"))
        result = response.json()["result"]
        assert result["serverInfo"]["name"] == "docsplit"
        assert "tools" in result["capabilities"]

    async def test_tools_list(self, client):
        response = await client.post("/mcp", json=rpc("tools/list"))
        names = [t["name"] for t in response.json()["result"]["tools"]]
        assert names == ["docsplit_sections", "docsplit_analyze", "docsplit_materialize"]

    async def test_tools_call(self, client):
        response = await client.post(
            "/mcp",
            json=rpc(
                "tools/call",
                {"name": "docsplit_sections", "arguments": {"text": "# Guide\n\n## Setup\n\nGo.\n"}},
            ),
        )
        result = response.json()["result"]
        assert result["isError"] is False
        assert result["structuredContent"]["sections"][1]["title"] == "Setup"
        assert '"sections"' in result["content"][0]["text"]

    async def test_engine_error_carries_rule(self, client, cyclic_document):
        response = await client.post(
            "/mcp",
            json=rpc("tools/call", {"name": "docsplit_analyze", "arguments": {"text": cyclic_document}}),
        )
        error = response.json()["error"]
        assert error["code"] == -32000
        assert error["data"]["rule"] == "dependency-cycle"

    async def test_invalid_arguments(self, client):
        response = await client.post(
            "/mcp", json=rpc("tools/call", {"name": "docsplit_sections", "arguments": {}})
        )
        assert response.json()["error"]["code"] == -32602

    async def test_unknown_method(self, client):
        response = await client.post("/mcp", json=rpc("resources/list"))
        assert response.json()["error"]["code"] == -32601

    async def test_parse_error(self, client):
        response = await client.post(
            "/mcp", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32700

    async def test_notification_has_no_body(self, client):
        response = await client.post("/mcp", json={"jsonrpc": "2.0", "method": "ping"})
        assert response.status_code == 204

    async def test_batch(self, client):
        response = await client.post("/mcp", json=[rpc("ping", id=1), rpc("tools/list", id=2)])
        assert [r["id"] for r in response.json()] == [1, 2]
