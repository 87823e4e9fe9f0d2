"""Index generation.

Runs once every GeneratedFile exists. The index lists each directory as a
table of files with a one-line summary, then the named workflow paths
assembled from the task templates by picking files of each stage in reading
order.
"""

import logging
import posixpath
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..models.requests import WorkflowTemplate
from .scoring.constants import (
    FRONT_MATTER_PURPOSE,
    INDEX_TITLE,
    STAGE_DIRECTORY_NAMES,
    SUMMARY_MAX_WORDS,
    WORKFLOW_TEMPLATES,
)
from .synthesizer import GeneratedFile

logger = logging.getLogger(__name__)


@dataclass
class WorkflowPath:
    name: str
    description: str
    paths: list[str]


@dataclass
class Index:
    """Rendered index artifact.

    Attributes:
        path: Index path relative to the output directory
        groups: Directory -> file paths, in reading order
        workflows: Non-empty workflow paths
        content: Rendered markdown
    """

    path: str
    groups: dict[str, list[str]] = field(default_factory=dict)
    workflows: list[WorkflowPath] = field(default_factory=list)
    content: str = ""


def summarize(file: GeneratedFile) -> str:
    """One-line summary of a file, from its Purpose."""
    words = str(file.front_matter.get(FRONT_MATTER_PURPOSE, "")).split()
    if not words:
        return file.title
    summary = " ".join(words[:SUMMARY_MAX_WORDS])
    if len(words) > SUMMARY_MAX_WORDS:
        summary = summary.rstrip(".,;:") + "..."
    return summary.replace("|", "\\|")


def workflow_paths(
    files: Sequence[GeneratedFile], templates: Sequence[WorkflowTemplate]
) -> list[WorkflowPath]:
    """Assemble each template's path; templates matching no file are omitted."""
    result = []
    for template in templates:
        paths: list[str] = []
        for stage in template.stages:
            matching = [f.path for f in files if f.stage == stage and f.path not in paths]
            if template.per_stage_limit is not None:
                matching = matching[: template.per_stage_limit]
            paths.extend(matching)
        if paths:
            result.append(WorkflowPath(template.name, template.description, paths))
        else:
            logger.debug(f"Workflow path '{template.name}' matches no files, omitted")
    return result


def build_index(
    files: Sequence[GeneratedFile],
    index_filename: str = "INDEX.md",
    title: str | None = None,
    templates: Sequence[WorkflowTemplate] | None = None,
) -> Index:
    """Build the index over the complete set of generated files."""
    index = Index(path=index_filename)
    by_path = {f.path: f for f in files}
    for file in files:
        directory = posixpath.dirname(file.path)
        index.groups.setdefault(directory, []).append(file.path)
    index.workflows = workflow_paths(files, WORKFLOW_TEMPLATES if templates is None else templates)

    base = posixpath.dirname(index_filename) or "."
    heading = f"{title} {INDEX_TITLE}" if title else INDEX_TITLE
    lines = [f"# {heading}", "", f"{len(files)} files in {len(index.groups)} directories.", ""]

    lines.append("## Directories")
    lines.append("")
    for directory, paths in index.groups.items():
        lines.append(f"### {directory or '.'}/")
        lines.append("")
        lines.append("| File | Stage | Summary |")
        lines.append("|---|---|---|")
        for path in paths:
            file = by_path[path]
            link = posixpath.relpath(path, base)
            stage = STAGE_DIRECTORY_NAMES[file.stage]
            label = file.title.replace("|", "\\|")
            lines.append(f"| [{label}]({link}) | {stage} | {summarize(file)} |")
        lines.append("")

    if index.workflows:
        lines.append("## Workflow Paths")
        lines.append("")
        for workflow in index.workflows:
            lines.append(f"### {workflow.name}")
            lines.append("")
            if workflow.description:
                lines.append(workflow.description)
                lines.append("")
            for step, path in enumerate(workflow.paths, start=1):
                lines.append(f"{step}. [{by_path[path].title}]({posixpath.relpath(path, base)})")
            lines.append("")

    index.content = "\n".join(lines).rstrip("\n") + "\n"
    logger.info(
        f"Built index {index.path}: {len(index.groups)} directories, "
        f"{len(index.workflows)} workflow paths"
    )
    return index
