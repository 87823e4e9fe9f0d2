"""Restructuring tool handlers.

Handles:
- docsplit_sections: Extract the section tree only
- docsplit_analyze: Plan the restructuring without touching the file system
- docsplit_materialize: Plan, render and write the files plus the index

The pipeline is CPU-bound, so every handler runs it in a worker thread.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from ...models import (
    AnalyzeParams,
    DocumentParams,
    MaterializeParams,
    RunMode,
    SectionsParams,
    ToolResult,
)
from ..core.document import Document, FileEntry
from ..core.extractor import extract
from ..errors import SynthesisCollision
from ..pipeline import RestructureEngine, sections_result
from .base import HandlerContext, count_result_tokens

logger = logging.getLogger(__name__)


def to_document(params: DocumentParams) -> Document:
    """Build the immutable engine input from validated tool parameters."""
    files = None
    if params.files is not None:
        files = tuple(FileEntry(path=f.path, size=f.size, content=f.content) for f in params.files)
    return Document(text=params.text, files=files, title=params.title)


def resolve_output_dir(output_root: Path, output_dir: str) -> Path:
    """Resolve a requested output directory below the output root.

    Raises:
        ValueError: If the directory escapes the output root
    """
    root = output_root.resolve()
    target = (root / output_dir).resolve()
    if target != root and root not in target.parents:
        raise ValueError(f"Invalid parameter: output_dir '{output_dir}' escapes the output root")
    return target


def _merged_options(params: dict[str, Any], ctx: HandlerContext) -> dict[str, Any]:
    merged = dict(params)
    merged["options"] = {**ctx.option_defaults, **(params.get("options") or {})}
    return merged


async def handle_sections(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Extract and return the section tree.

    Args:
        params: Dict containing:
            - text: Markdown document (document mode)
            - files: File inventory entries (repository mode)
            - title: Optional document title

    Returns:
        ToolResult with SectionsResult
    """
    parsed = SectionsParams.model_validate(params)
    tree = await asyncio.to_thread(extract, to_document(parsed))
    data = sections_result(tree).model_dump(mode="json")
    return ToolResult(
        data=data,
        input_tokens=tree.total_tokens,
        output_tokens=count_result_tokens(data),
    )


async def handle_analyze(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Plan a restructuring and return the report. Never writes files.

    Args:
        params: Document fields plus optional ``options`` (RestructureOptions)

    Returns:
        ToolResult with PlanReport
    """
    parsed = AnalyzeParams.model_validate(_merged_options(params, ctx))
    options = parsed.options.model_copy(update={"mode": RunMode.ANALYZE_ONLY})
    engine = RestructureEngine(options)
    report = await asyncio.to_thread(engine.run, to_document(parsed))
    data = report.model_dump(mode="json")
    logger.info(
        f"Analyzed document: {len(report.nodes)} planned files, "
        f"{report.planned_tokens}/{report.document_tokens} tokens"
    )
    return ToolResult(
        data=data,
        input_tokens=report.document_tokens,
        output_tokens=count_result_tokens(data),
    )


async def handle_materialize(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Plan, render and write the restructured files.

    Args:
        params: Document fields, ``output_dir`` (relative to the output root)
            and optional ``options`` (RestructureOptions)

    Returns:
        ToolResult with MaterializeResult
    """
    parsed = MaterializeParams.model_validate(_merged_options(params, ctx))
    options = parsed.options.model_copy(update={"mode": RunMode.MATERIALIZE})
    output_dir = resolve_output_dir(ctx.output_root, parsed.output_dir)
    engine = RestructureEngine(options)
    try:
        result = await asyncio.to_thread(engine.run, to_document(parsed), output_dir)
    except SynthesisCollision as e:
        logger.warning(f"Materialize into {output_dir} refused: {e}")
        raise
    data = result.model_dump(mode="json")
    return ToolResult(
        data=data,
        input_tokens=result.report.document_tokens,
        output_tokens=count_result_tokens(data),
    )
