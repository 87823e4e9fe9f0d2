"""Tests for the tool handlers."""

import pytest
from pydantic import ValidationError

from docsplit.api.deps import execute_tool
from docsplit.engine.errors import PlanningError, SynthesisCollision
from docsplit.engine.handlers import (
    HandlerContext,
    handle_analyze,
    handle_materialize,
    handle_sections,
    resolve_output_dir,
)


@pytest.fixture
def ctx(tmp_path):
    return HandlerContext(
        output_root=tmp_path,
        option_defaults={
            "split_threshold": 7.0,
            "file_token_ceiling": 2500,
            "on_collision": "diff-report",
        },
        request_id="test-request",
    )


class TestHandleSections:
    """Tests for docsplit_sections."""

    async def test_returns_tree(self, ctx):
        result = await handle_sections({"text": "# Guide\n\nIntro.\n\n## Setup\n\nRun it.\n"}, ctx)
        sections = result.data["sections"]
        assert [s["title"] for s in sections] == ["Guide", "Setup"]
        assert sections[1]["parent_id"] == sections[0]["id"]
        assert sections[1]["stage"] == "setup"
        assert result.input_tokens == result.data["total_tokens"]
        assert result.output_tokens > 0

    async def test_requires_exactly_one_input(self, ctx):
        with pytest.raises(ValidationError):
            await handle_sections({}, ctx)
        with pytest.raises(ValidationError):
            await handle_sections({"text": "# A\n", "files": [{"path": "a.py"}]}, ctx)


class TestHandleAnalyze:
    """Tests for docsplit_analyze."""

    async def test_report(self, ctx, five_stage_document, tmp_path):
        result = await handle_analyze({"text": five_stage_document}, ctx)
        assert len(result.data["nodes"]) == 5
        assert result.data["split_threshold"] == 7.0
        assert list(tmp_path.iterdir()) == []

    async def test_request_options_override_defaults(self, ctx, five_stage_document):
        result = await handle_analyze(
            {"text": five_stage_document, "options": {"split_threshold": 9.5, "file_token_ceiling": 50000}},
            ctx,
        )
        assert result.data["split_threshold"] == 9.5
        assert len(result.data["nodes"]) == 1

    async def test_unknown_weight_rejected(self, ctx, five_stage_document):
        with pytest.raises(ValidationError, match="Unknown scoring criteria"):
            await handle_analyze({"text": five_stage_document, "options": {"weights": {"vibes": 1}}}, ctx)

    async def test_cycle_raises_planning_error(self, ctx, cyclic_document):
        with pytest.raises(PlanningError):
            await handle_analyze({"text": cyclic_document}, ctx)


class TestHandleMaterialize:
    """Tests for docsplit_materialize."""

    async def test_writes_below_output_root(self, ctx, five_stage_document, tmp_path):
        result = await handle_materialize({"text": five_stage_document, "output_dir": "handbook"}, ctx)
        assert result.data["index_path"] == "INDEX.md"
        assert (tmp_path / "handbook" / "INDEX.md").is_file()
        assert len(result.data["files"]) == 5
        assert {e["action"] for e in result.data["manifest"]["entries"]} == {"created"}

    async def test_collision_is_reraised(self, ctx, five_stage_document, tmp_path):
        params = {"text": five_stage_document, "output_dir": "handbook"}
        await handle_materialize(params, ctx)
        (tmp_path / "handbook" / "INDEX.md").write_text("mine\n")
        with pytest.raises(SynthesisCollision):
            await handle_materialize({**params, "options": {"on_collision": "fail"}}, ctx)

    async def test_output_dir_cannot_escape_root(self, ctx, five_stage_document):
        with pytest.raises(ValueError, match="Invalid parameter"):
            await handle_materialize({"text": five_stage_document, "output_dir": "../elsewhere"}, ctx)


def test_resolve_output_dir(tmp_path):
    assert resolve_output_dir(tmp_path, "a/b") == (tmp_path / "a" / "b").resolve()
    assert resolve_output_dir(tmp_path, ".") == tmp_path.resolve()
    with pytest.raises(ValueError):
        resolve_output_dir(tmp_path, "/etc")


async def test_execute_tool_rejects_unknown_tool(ctx):
    with pytest.raises(ValueError, match="Unknown tool: docsplit_nope"):
        await execute_tool("docsplit_nope", {}, ctx)


async def test_execute_tool_dispatches_by_name(ctx):
    result = await execute_tool("docsplit_sections", {"text": "# Only\n\nBody.\n"}, ctx)
    assert result.data["sections"][0]["title"] == "Only"
