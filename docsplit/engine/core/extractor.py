"""Section extraction for markdown documents and repository inventories.

The extractor is the only stage that reads raw input. It produces a
``SectionTree`` with token estimates, a first-pass workflow stage, an
independence rating, declared dependencies and detected cross-references.
Every later stage works on that tree alone.
"""

import logging
import posixpath
import re

from ...models.enums import WorkflowStage
from ..errors import AnalysisError
from ..scoring.constants import (
    ANCHOR_LINK_PATTERN,
    BACK_REFERENCE_PATTERNS,
    BACK_REFERENCE_PENALTY,
    DEPENDENCY_PENALTY,
    DIRECTIVE_PATTERN,
    DIRECTORY_STAGE_HINTS,
    EXTENSION_VARIANTS,
    FENCE_PATTERN,
    FILE_STAGE_HINTS,
    HEADING_PATTERN,
    INDEPENDENCE_BASE,
    SEE_REFERENCE_PATTERN,
    SIBLING_MENTION_PENALTY,
    STAGE_KEYWORDS,
    STEP_LINE_MIN,
    STEP_PATTERNS,
    TEST_FILE_PATTERNS,
    VARIANT_KEYWORDS,
)
from ..scoring.topics import anchor_slug, mentions_title
from .document import Document, FileEntry, Section, SectionTree
from .tokens import count_tokens, estimate_tokens_from_size

logger = logging.getLogger(__name__)

DEFAULT_ROOT_TITLE = "Overview"
DEFAULT_REPOSITORY_TITLE = "Repository"


def extract(document: Document) -> SectionTree:
    """Build the section tree for a document or a repository inventory.

    Raises:
        AnalysisError: If the input cannot be decomposed into sections
    """
    if document.repository_mode:
        tree = extract_inventory(document.files or (), title=document.title)
    else:
        tree = extract_markdown(document.text or "", title=document.title)
    logger.info(
        f"Extracted {len(tree)} sections ({tree.total_tokens} tokens, "
        f"{'repository' if tree.repository_mode else 'document'} mode)"
    )
    return tree


# ============ DOCUMENT MODE ============


def _scan_headings(lines: list[str]) -> list[tuple[int, int, str]]:
    """Return (line_index, level, title) for ATX headings outside code fences."""
    headings = []
    in_fence = False
    for i, line in enumerate(lines):
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = HEADING_PATTERN.match(line.rstrip("\r\n"))
        if match:
            headings.append((i, len(match.group(1)), match.group(2).strip()))
    return headings


def _strip_fences(text: str) -> str:
    """Drop fenced code blocks so links and directives inside code are ignored."""
    kept = []
    in_fence = False
    for line in text.splitlines():
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
            continue
        if not in_fence:
            kept.append(line)
    return "\n".join(kept)


def _parse_directives(prose: str) -> dict[str, list[str]]:
    directives: dict[str, list[str]] = {}
    for match in DIRECTIVE_PATTERN.finditer(prose):
        directives.setdefault(match.group(1).lower(), []).append(match.group(2).strip())
    return directives


def _stage_from_title(title: str) -> WorkflowStage | None:
    lowered = title.lower()
    for stage, keywords in STAGE_KEYWORDS.items():
        for keyword in keywords:
            if re.search(rf"(?<![a-z]){re.escape(keyword)}", lowered):
                return stage
    return None


def _is_step_like(prose: str) -> bool:
    step_lines = 0
    for line in prose.splitlines():
        if any(re.match(p, line, re.IGNORECASE) for p in STEP_PATTERNS):
            step_lines += 1
    return step_lines >= STEP_LINE_MIN


def _variant_from_title(title: str) -> str | None:
    for word in re.findall(r"[a-z][a-z0-9+#]*", title.lower()):
        if word in VARIANT_KEYWORDS:
            return word
    return None


def _declared_stage(values: list[str], section_id: str) -> WorkflowStage:
    raw = values[-1].lower()
    try:
        return WorkflowStage(raw)
    except ValueError:
        valid = ", ".join(s.value for s in WorkflowStage)
        raise AnalysisError(
            f"Unknown stage '{raw}' in stage directive (expected one of: {valid})",
            rule="invalid-directive",
            section_id=section_id,
        ) from None


def _declared_independence(values: list[str], section_id: str) -> float:
    raw = values[-1]
    try:
        value = float(raw)
    except ValueError:
        raise AnalysisError(
            f"Independence directive must be a number, got '{raw}'",
            rule="invalid-directive",
            section_id=section_id,
        ) from None
    return min(10.0, max(0.0, value))


def extract_markdown(text: str, title: str | None = None) -> SectionTree:
    """Parse a markdown document into a section tree.

    A document whose first line is its only level-1 heading uses that heading
    as the root; otherwise a synthetic level-0 root carries the preamble.
    """
    if not text.strip():
        raise AnalysisError("Document is empty", rule="empty-input", section_id=None)
    if "\x00" in text:
        raise AnalysisError(
            "Document contains binary data and cannot be parsed as text",
            rule="no-section-boundary",
        )

    lines = text.splitlines(keepends=True)
    headings = _scan_headings(lines)

    first_content = next(i for i, line in enumerate(lines) if line.strip())
    h1_count = sum(1 for _, level, _ in headings if level == 1)
    heading_root = bool(headings) and headings[0][0] == first_content and headings[0][1] == 1
    heading_root = heading_root and h1_count == 1

    # Spans: (start_line, end_line_exclusive, level, title)
    boundaries = [h[0] for h in headings] + [len(lines)]
    spans: list[tuple[int, int, int, str]] = []
    if heading_root:
        spans.append((0, boundaries[1], 1, headings[0][2]))
        rest = headings[1:]
        rest_bounds = boundaries[1:]
    else:
        preamble_end = boundaries[0]
        spans.append((0, preamble_end, 0, title or DEFAULT_ROOT_TITLE))
        rest = headings
        rest_bounds = boundaries
    for k, (line_idx, level, heading_title) in enumerate(rest):
        spans.append((line_idx, rest_bounds[k + 1], level, heading_title))

    tree = SectionTree()
    stack: list[int] = []  # indices of open sections, increasing level
    for index, (start, end, level, heading_title) in enumerate(spans):
        content = "".join(lines[start:end])
        while stack and tree[stack[-1]].level >= level:
            stack.pop()
        parent = stack[-1] if stack else None
        if index > 0 and parent is None:
            parent = 0
        section = Section(
            index=index,
            id=f"s{index:03d}",
            title=heading_title,
            level=level,
            content=content,
            token_count=count_tokens(content),
            stage=WorkflowStage.OVERVIEW,
            anchor=anchor_slug(heading_title),
            start_line=start + 1,
            parent=parent,
        )
        tree.add(section)
        if parent is not None:
            tree[parent].children.append(index)
        stack.append(index)

    tree.total_tokens = sum(s.token_count for s in tree.sections)
    _annotate_markdown(tree)
    return tree


def _annotate_markdown(tree: SectionTree) -> None:
    """Fill stage, references, dependencies, independence and variant."""
    prose_by_index = {s.index: _strip_fences(s.content) for s in tree.sections}
    title_lookup: dict[str, str] = {}
    anchor_lookup: dict[str, str] = {}
    for section in tree.sections:
        title_lookup.setdefault(section.title.lower(), section.id)
        anchor_lookup.setdefault(section.anchor, section.id)

    def match_title(target: str) -> str | None:
        key = target.strip().strip("\"'`").lower()
        return title_lookup.get(key) or anchor_lookup.get(anchor_slug(key))

    # Titles sorted longest first so "Advanced Setup" wins over "Setup"
    titles_by_length = sorted(title_lookup.items(), key=lambda kv: (-len(kv[0]), kv[1]))

    # Pre-order guarantees parents are annotated before their children
    for section in tree.walk():
        prose = prose_by_index[section.index]
        directives = _parse_directives(prose)

        # Workflow stage: declared > heading keywords > step-like > inherited.
        # An undeclared root is always the overview.
        if "stage" in directives:
            section.stage = _declared_stage(directives["stage"], section.id)
            section.stage_declared = True
        elif section.parent is None:
            section.stage = WorkflowStage.OVERVIEW
        else:
            inferred = _stage_from_title(section.title)
            if inferred is None and _is_step_like(prose):
                inferred = WorkflowStage.IMPLEMENTATION
            section.stage = inferred or tree[section.parent].stage

        dependencies: list[str] = []
        references: list[str] = []
        unresolved: list[tuple[str, str]] = []
        for target in directives.get("requires", []):
            matched = match_title(target)
            if matched is None:
                unresolved.append(("prerequisite", target))
            elif matched != section.id and matched not in dependencies:
                dependencies.append(matched)
        for target in directives.get("related", []):
            matched = match_title(target)
            if matched is None:
                unresolved.append(("related", target))
            elif matched != section.id and matched not in references:
                references.append(matched)

        for anchor in ANCHOR_LINK_PATTERN.findall(prose):
            matched = anchor_lookup.get(anchor.lower())
            if matched and matched != section.id and matched not in references:
                references.append(matched)

        for mention in SEE_REFERENCE_PATTERN.findall(prose):
            mention_lower = mention.strip().lower()
            for known_title, known_id in titles_by_length:
                if len(known_title) >= 4 and mention_lower.startswith(known_title):
                    if known_id != section.id and known_id not in references:
                        references.append(known_id)
                    break

        section.dependencies = tuple(dependencies)
        section.references = tuple(r for r in references if r not in dependencies)
        section.unresolved = tuple(unresolved)

        if "variant" in directives:
            section.variant = directives["variant"][-1].lower() or None
        else:
            section.variant = _variant_from_title(section.title)

        if "independence" in directives:
            section.independence = _declared_independence(directives["independence"], section.id)
        else:
            back_refs = sum(
                len(re.findall(p, prose, re.IGNORECASE)) for p in BACK_REFERENCE_PATTERNS
            )
            sibling_mentions = sum(
                1 for sib in tree.siblings(section.index) if mentions_title(sib.title, prose)
            )
            score = (
                INDEPENDENCE_BASE
                - DEPENDENCY_PENALTY * len(section.dependencies)
                - BACK_REFERENCE_PENALTY * min(back_refs, 3)
                - SIBLING_MENTION_PENALTY * sibling_mentions
            )
            section.independence = min(10.0, max(0.0, score))


# ============ REPOSITORY MODE ============


def _normalize_path(raw: str) -> str:
    path = raw.replace("\\", "/").strip()
    while path.startswith("./"):
        path = path[2:]
    normalized = posixpath.normpath(path) if path else ""
    if not normalized or normalized == "." or normalized.startswith("/"):
        raise AnalysisError(f"Invalid inventory path '{raw}'", rule="invalid-inventory")
    if normalized == ".." or normalized.startswith("../"):
        raise AnalysisError(
            f"Inventory path '{raw}' escapes the repository root", rule="invalid-inventory"
        )
    return normalized


def _file_stage(name: str, inherited: WorkflowStage) -> WorkflowStage:
    lowered = name.lower()
    if lowered in FILE_STAGE_HINTS:
        return FILE_STAGE_HINTS[lowered]
    if any(re.match(p, lowered) for p in TEST_FILE_PATTERNS):
        return WorkflowStage.TESTING
    if lowered.endswith((".md", ".rst")) and inherited == WorkflowStage.IMPLEMENTATION:
        return WorkflowStage.REFERENCE
    return inherited


def _file_body(entry: FileEntry, path: str, variant: str | None) -> str:
    if entry.content is None:
        return f"- `{path}` ({entry.size} bytes)\n"
    body = entry.content if entry.content.endswith("\n") else entry.content + "\n"
    return f"### `{path}`\n\n```{variant or ''}\n{body}```\n\n"


def extract_inventory(files: tuple[FileEntry, ...], title: str | None = None) -> SectionTree:
    """Build a section tree from a repository file inventory.

    Directories become sections and files become leaf sections, in sorted
    path order.
    """
    if not files:
        raise AnalysisError("File inventory is empty", rule="empty-input")

    entries: dict[str, FileEntry] = {}
    for entry in files:
        path = _normalize_path(entry.path)
        if path in entries:
            raise AnalysisError(f"Duplicate inventory path '{path}'", rule="invalid-inventory")
        if entry.content is not None and "\x00" in entry.content:
            raise AnalysisError(
                f"File '{path}' contains binary data", rule="invalid-inventory"
            )
        entries[path] = entry

    tree = SectionTree(repository_mode=True)
    tree.add(
        Section(
            index=0,
            id="s000",
            title=title or DEFAULT_REPOSITORY_TITLE,
            level=0,
            content="",
            token_count=0,
            stage=WorkflowStage.OVERVIEW,
            anchor=anchor_slug(title or DEFAULT_REPOSITORY_TITLE),
        )
    )
    dir_index: dict[str, int] = {"": 0}

    def ensure_dir(dir_path: str) -> int:
        if dir_path in dir_index:
            return dir_index[dir_path]
        parent = ensure_dir(posixpath.dirname(dir_path))
        name = posixpath.basename(dir_path)
        parent_stage = tree[parent].stage
        stage = DIRECTORY_STAGE_HINTS.get(name.lower(), parent_stage)
        if parent == 0 and name.lower() not in DIRECTORY_STAGE_HINTS:
            stage = WorkflowStage.IMPLEMENTATION
        index = len(tree)
        tree.add(
            Section(
                index=index,
                id=f"s{index:03d}",
                title=dir_path,
                level=dir_path.count("/") + 1,
                content="",
                token_count=0,
                stage=stage,
                anchor=anchor_slug(dir_path),
                parent=parent,
            )
        )
        tree[parent].children.append(index)
        dir_index[dir_path] = index
        return index

    for path in sorted(entries):
        entry = entries[path]
        parent = ensure_dir(posixpath.dirname(path))
        name = posixpath.basename(path)
        variant = EXTENSION_VARIANTS.get(posixpath.splitext(name)[1].lower())
        body = _file_body(entry, path, variant)
        size_tokens = None if entry.content is not None else estimate_tokens_from_size(entry.size)
        index = len(tree)
        tree.add(
            Section(
                index=index,
                id=f"s{index:03d}",
                title=path,
                level=path.count("/") + 1,
                content=body,
                token_count=count_tokens(body),
                size_tokens=size_tokens,
                stage=_file_stage(name, tree[parent].stage),
                variant=variant,
                anchor=anchor_slug(path),
                parent=parent,
            )
        )
        tree[parent].children.append(index)

    tree.total_tokens = sum(s.token_count for s in tree.sections)
    _annotate_inventory(tree, entries)
    return tree


def _annotate_inventory(tree: SectionTree, entries: dict[str, FileEntry]) -> None:
    """Independence from sibling mentions; related references from basenames."""
    for section in tree.sections[1:]:
        entry = entries.get(section.title)
        if entry is None or not entry.content:
            continue
        mentioned = 0
        references = []
        for sibling in tree.siblings(section.index):
            stem = posixpath.splitext(posixpath.basename(sibling.title))[0]
            if mentions_title(stem, entry.content):
                mentioned += 1
                references.append(sibling.id)
        section.references = tuple(references)
        section.independence = max(0.0, INDEPENDENCE_BASE - SIBLING_MENTION_PENALTY * mentioned)
