"""File synthesis: render planned files and write them all-or-nothing.

Every generated file has the same shape:

    ---
    Purpose: ...
    Prerequisites: [...]
    Related Files: [...]
    Agent Use Case: ...
    ---

    <carried body>

    ---

    - **Previous**: [Title](relative/path.md)
    - **Next**: none
    - **Up**: none

Front matter paths are relative to the output root; footer links are
relative to the file itself so they work when browsing the tree.
"""

import contextlib
import difflib
import logging
import os
import posixpath
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..models.enums import CollisionPolicy, ManifestAction, RelationKind, WorkflowStage
from ..models.plan import Manifest, ManifestEntry
from .errors import SynthesisCollision
from .planner import Plan, PlanNode
from .resolver import ResolvedLinks
from .scoring.constants import (
    AGENT_USE_CASES,
    DIRECTIVE_PATTERN,
    FENCE_PATTERN,
    FRONT_MATTER_PREREQUISITES,
    FRONT_MATTER_PURPOSE,
    FRONT_MATTER_RELATED,
    FRONT_MATTER_USE_CASE,
    HEADING_PATTERN,
    NAVIGATION_ABSENT,
    NAVIGATION_FIELDS,
    PURPOSE_MAX_WORDS,
)

logger = logging.getLogger(__name__)

_NAVIGATION_KINDS = (RelationKind.PREVIOUS, RelationKind.NEXT, RelationKind.UP)


@dataclass(frozen=True)
class GeneratedFile:
    """A rendered output file. Written once, never edited in place."""

    path: str
    title: str
    stage: WorkflowStage
    front_matter: dict[str, Any]
    body: str
    footer: str
    content: str
    token_count: int


@dataclass
class OutputFile:
    """Any artifact the writer puts on disk (generated files and the index)."""

    path: str
    content: str


@dataclass
class _PendingWrite:
    target: Path
    content: str
    action: ManifestAction
    staged: Path | None = None
    backup: Path | None = None


@dataclass
class WriteOutcome:
    manifest: Manifest
    written: list[str] = field(default_factory=list)


# ============ RENDERING ============


def _sentence_source(body: str) -> str | None:
    """First prose line: not a heading, directive, fence, table or list marker."""
    in_fence = False
    for line in DIRECTIVE_PATTERN.sub("", body).splitlines():
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        stripped = line.strip()
        if in_fence or not stripped:
            continue
        if HEADING_PATTERN.match(stripped) or stripped.startswith(("|", "<!--", ">", "---")):
            continue
        stripped = re.sub(r"^(?:[-*+]|\d+[.)])\s+", "", stripped)
        if re.search(r"[A-Za-z]", stripped):
            return stripped
    return None


def extract_purpose(body: str, title: str) -> str:
    """First prose sentence of the body, capped at PURPOSE_MAX_WORDS words."""
    source = _sentence_source(body)
    if source is None:
        return f"Covers {title}."
    text = re.sub(r"[*_`]", "", source)
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    match = re.match(r"(.+?[.!?])(?:\s|$)", text)
    sentence = match.group(1) if match else text
    words = sentence.split()
    if len(words) > PURPOSE_MAX_WORDS:
        sentence = " ".join(words[:PURPOSE_MAX_WORDS]).rstrip(",;:") + "..."
    return sentence


def relative_link(source_path: str, target_path: str) -> str:
    """Path of ``target_path`` as seen from the directory of ``source_path``."""
    start = posixpath.dirname(source_path) or "."
    return posixpath.relpath(target_path, start)


def render_front_matter(front_matter: dict[str, Any]) -> str:
    dumped = yaml.safe_dump(
        front_matter, sort_keys=False, allow_unicode=True, default_flow_style=False, width=1000
    )
    return f"---\n{dumped}---\n"


def _footer(node: PlanNode, links: ResolvedLinks, titles: dict[str, str]) -> str:
    lines = []
    for label, kind in zip(NAVIGATION_FIELDS, _NAVIGATION_KINDS):
        target = links.single(node.path, kind)
        if target is None:
            lines.append(f"- **{label}**: {NAVIGATION_ABSENT}")
        else:
            lines.append(f"- **{label}**: [{titles[target]}]({relative_link(node.path, target)})")
    return "\n".join(lines) + "\n"


def render_file(node: PlanNode, links: ResolvedLinks, titles: dict[str, str]) -> GeneratedFile:
    """Render one PlanNode into a GeneratedFile."""
    body = node.body.strip("\n") + "\n"
    front_matter = {
        FRONT_MATTER_PURPOSE: extract_purpose(body, node.title),
        FRONT_MATTER_PREREQUISITES: links.of_kind(node.path, RelationKind.PREREQUISITE),
        FRONT_MATTER_RELATED: links.of_kind(node.path, RelationKind.RELATED),
        FRONT_MATTER_USE_CASE: AGENT_USE_CASES[node.stage].format(title=node.title),
    }
    footer = _footer(node, links, titles)
    content = f"{render_front_matter(front_matter)}\n{body}\n---\n\n{footer}"
    return GeneratedFile(
        path=node.path,
        title=node.title,
        stage=node.stage,
        front_matter=front_matter,
        body=body,
        footer=footer,
        content=content,
        token_count=node.token_count,
    )


def render_files(plan: Plan, links: ResolvedLinks) -> list[GeneratedFile]:
    """Render every planned file in reading order."""
    titles = {node.path: node.title for node in plan.nodes}
    files = [render_file(node, links, titles) for node in plan.nodes]
    logger.info(f"Rendered {len(files)} files ({sum(f.token_count for f in files)} tokens)")
    return files


def parse_front_matter(content: str) -> dict[str, Any]:
    """Read the YAML front matter back from rendered content."""
    if not content.startswith("---\n"):
        return {}
    end = content.find("\n---\n", 4)
    if end == -1:
        return {}
    return yaml.safe_load(content[4 : end + 1]) or {}


# ============ WRITING ============


def diff_summary(old: str, new: str) -> str:
    """One-line summary of what a rewrite would change."""
    added = removed = 0
    first_change = None
    for line in difflib.unified_diff(old.splitlines(), new.splitlines(), lineterm="", n=0):
        if line.startswith(("+++", "---", "@@")):
            continue
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1
        if first_change is None and line[:1] in "+-":
            first_change = line[1:].strip()[:60]
    summary = f"+{added} -{removed} lines"
    if first_change:
        summary += f" (first change: {first_change!r})"
    return summary


def write_outputs(
    outputs: list[OutputFile],
    output_dir: Path,
    policy: CollisionPolicy = CollisionPolicy.DIFF_REPORT,
) -> WriteOutcome:
    """Write every output under ``output_dir`` as a single all-or-nothing step.

    Raises:
        SynthesisCollision: If ``policy`` is ``fail`` and a target exists with
            different content. Nothing is written in that case.
    """
    entries: list[ManifestEntry] = []
    pending: list[_PendingWrite] = []
    collisions: list[str] = []

    for output in outputs:
        target = output_dir / output.path
        if target.exists():
            existing = target.read_text(encoding="utf-8")
            if existing == output.content:
                entries.append(ManifestEntry(path=output.path, action=ManifestAction.UNCHANGED))
                continue
            if policy == CollisionPolicy.FAIL:
                collisions.append(output.path)
                continue
            if policy == CollisionPolicy.DIFF_REPORT:
                entries.append(
                    ManifestEntry(
                        path=output.path,
                        action=ManifestAction.WOULD_CHANGE,
                        diff_summary=diff_summary(existing, output.content),
                    )
                )
                continue
            action = ManifestAction.OVERWRITTEN
        else:
            action = ManifestAction.CREATED
        entries.append(ManifestEntry(path=output.path, action=action))
        pending.append(_PendingWrite(target=target, content=output.content, action=action))

    if collisions:
        raise SynthesisCollision(
            f"{len(collisions)} target file(s) already exist with different content "
            f"under {output_dir}: {', '.join(collisions)}",
            paths=collisions,
        )

    _stage_and_commit(pending, output_dir)

    manifest = Manifest(entries=entries)
    if manifest.differences:
        logger.warning(
            f"{len(manifest.differences)} existing file(s) differ and were left untouched "
            f"in {output_dir}"
        )
    logger.info(f"Wrote {len(pending)} files to {output_dir} ({len(entries)} paths checked)")
    return WriteOutcome(manifest=manifest, written=[str(p.target) for p in pending])


def _stage_and_commit(pending: list[_PendingWrite], output_dir: Path) -> None:
    """Stage every file to a temporary sibling, then move all of them into place.

    Existing targets are moved aside before they are replaced, so a failure
    part way through the commit puts every original file back.
    """
    created_dirs: list[Path] = []
    committed: list[_PendingWrite] = []
    try:
        for item in pending:
            parent = item.target.parent
            missing = [p for p in (parent, *parent.parents) if not p.exists()]
            parent.mkdir(parents=True, exist_ok=True)
            created_dirs.extend(reversed(missing))
            fd, staged = tempfile.mkstemp(dir=parent, prefix=f".{item.target.name}.", suffix=".tmp")
            item.staged = Path(staged)
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(item.content)
        for item in pending:
            if item.target.exists():
                item.backup = _move_aside(item.target)
            os.replace(item.staged, item.target)
            item.staged = None
            committed.append(item)
    except BaseException:
        logger.error(f"Writing to {output_dir} failed; rolling back", exc_info=True)
        _roll_back(pending, committed, created_dirs)
        raise

    for item in pending:
        if item.backup is not None:
            with contextlib.suppress(OSError):
                item.backup.unlink()
            item.backup = None


def _move_aside(target: Path) -> Path:
    fd, name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".bak")
    os.close(fd)
    try:
        os.replace(target, name)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(name)
        raise
    return Path(name)


def _roll_back(
    pending: list[_PendingWrite], committed: list[_PendingWrite], created_dirs: list[Path]
) -> None:
    for item in reversed(committed):
        with contextlib.suppress(OSError):
            item.target.unlink()
    for item in reversed(pending):
        if item.backup is not None:
            try:
                os.replace(item.backup, item.target)
                item.backup = None
            except OSError:
                logger.error(f"Could not restore {item.target}; original kept at {item.backup}")
        if item.staged is not None:
            with contextlib.suppress(OSError):
                item.staged.unlink()
            item.staged = None
    for directory in reversed(created_dirs):
        with contextlib.suppress(OSError):
            directory.rmdir()
