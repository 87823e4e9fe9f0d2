"""Structure planner: turns a tagged section tree into concrete file paths.

Each SPLIT (or ROOT) section together with its folded KEEP descendants
becomes one PlanNode. Top-level nodes are grouped into ``NN-<stage>``
directories ordered by workflow stage; nested SPLIT sections live in a
``NN-<parent>`` directory under their parent's directory. A non-root node
that exceeds the token ceiling is partitioned into ``<slug>-part-<k>`` files
at block boundaries.

References stay symbolic here (``ReferenceToken``); the resolver maps them to
paths once every path is known.
"""

import graphlib
import heapq
import logging
import math
import re
from dataclasses import dataclass, field

from ..models.enums import RelationKind, WorkflowStage
from .core.document import Section, SectionTree
from .core.tokens import count_tokens
from .decision import TaggedTree
from .errors import PlanningError
from .scoring.constants import (
    DIRECTIVE_PATTERN,
    FENCE_PATTERN,
    FILENAME_KEYWORD_COUNT,
    GENERIC_TITLE_TERMS,
    HEADING_PATTERN,
    STAGE_DIRECTORY_NAMES,
    STAGE_ORDER,
)
from .scoring.topics import slugify, top_keywords

logger = logging.getLogger(__name__)

SECTION_TOKEN_PREFIX = "section:"
TITLE_TOKEN_PREFIX = "title:"


@dataclass(frozen=True)
class ReferenceToken:
    """Symbolic reference: "link to the node that carries <target>"."""

    kind: RelationKind
    target: str  # "section:<id>" or "title:<declared title>"
    source_section: str


@dataclass(frozen=True)
class Block:
    """A slice of carried content (a section, or a paragraph when partitioning)."""

    section_id: str
    text: str
    token_count: int


@dataclass
class PlanNode:
    """One planned output file."""

    id: str
    title: str
    stage: WorkflowStage
    primary_section: str
    section_ids: tuple[str, ...]
    blocks: list[Block]
    token_count: int
    directory: str = ""
    filename: str = ""
    parent_id: str | None = None
    position: int = 0
    part: int | None = None
    part_count: int | None = None
    tokens: tuple[ReferenceToken, ...] = ()

    @property
    def path(self) -> str:
        return f"{self.directory}/{self.filename}" if self.directory else self.filename

    @property
    def body(self) -> str:
        return "".join(block.text for block in self.blocks)


@dataclass
class Plan:
    """Complete set of planned files.

    Attributes:
        nodes: PlanNodes in reading order (pre-order over the plan tree)
        section_to_node: Redirect table, every section id -> surviving node id
        document_tokens: Token estimate of the source document
        tagged: Tagged tree the plan was built from
    """

    nodes: list[PlanNode] = field(default_factory=list)
    section_to_node: dict[str, str] = field(default_factory=dict)
    document_tokens: int = 0
    tagged: TaggedTree | None = None
    _by_id: dict[str, PlanNode] = field(default_factory=dict, repr=False)

    def node(self, node_id: str) -> PlanNode:
        if not self._by_id:
            self._by_id = {n.id: n for n in self.nodes}
        return self._by_id[node_id]

    @property
    def planned_tokens(self) -> int:
        return sum(n.token_count for n in self.nodes)


@dataclass
class _Unit:
    """Sections that end up in the same file (before partitioning)."""

    section: Section
    members: list[Section]
    children: list["_Unit"] = field(default_factory=list)
    nodes: list[PlanNode] = field(default_factory=list)
    slug: str = ""
    position: int = 0


# ============ CHECKS ============


def check_dependency_cycles(tree: SectionTree) -> None:
    """Raise PlanningError if declared section dependencies form a cycle."""
    sorter = graphlib.TopologicalSorter(
        {s.id: set(s.dependencies) for s in tree.sections if s.dependencies}
    )
    try:
        sorter.prepare()
    except graphlib.CycleError as exc:
        cycle = exc.args[1]
        described = " requires ".join(f"'{tree.by_id(sid).title}'" for sid in reversed(cycle))
        raise PlanningError(
            f"Declared dependencies form a cycle: {described} "
            f"({' -> '.join(reversed(cycle))}); prerequisites cannot be linearized",
            rule="dependency-cycle",
            section_id=cycle[0],
        ) from None


# ============ UNITS ============


def _has_meaningful_content(section: Section) -> bool:
    """Whether a section has anything beyond its heading, directives and blanks."""
    for line in DIRECTIVE_PATTERN.sub("", section.content).splitlines():
        stripped = line.strip()
        if stripped and not HEADING_PATTERN.match(stripped):
            return True
    return False


def _build_units(tagged: TaggedTree) -> _Unit:
    tree = tagged.tree

    def build(section: Section) -> _Unit:
        members = [section]
        children: list[_Unit] = []
        stack = list(reversed(section.children))
        while stack:
            current = tree[stack.pop()]
            if tagged.is_boundary(current.id):
                children.append(build(current))
                continue
            members.append(current)
            stack.extend(reversed(current.children))
        return _Unit(section=section, members=members, children=children)

    return build(tree.root)


def _unit_dependencies(tree: SectionTree, unit: _Unit) -> set[str]:
    """Section ids required by anything inside the unit (nested units included)."""
    required: set[str] = set()
    for section in tree.walk(unit.section.index):
        required.update(section.dependencies)
    return required


def _order_siblings(tree: SectionTree, units: list[_Unit]) -> list[_Unit]:
    """Prerequisites first, document order as tie-break.

    Mutual requirements that only appear after folding are broken by
    document order so the result is still deterministic.
    """
    if len(units) < 2:
        return list(units)
    members = {id(u): tree.subtree_ids(u.section.index) for u in units}
    after: dict[int, set[int]] = {id(u): set() for u in units}
    indegree = {id(u): 0 for u in units}
    for unit in units:
        required = _unit_dependencies(tree, unit)
        for other in units:
            if other is unit:
                continue
            if required & members[id(other)]:
                after[id(other)].add(id(unit))
                indegree[id(unit)] += 1

    by_key = {id(u): u for u in units}
    heap = [(u.section.index, id(u)) for u in units if indegree[id(u)] == 0]
    heapq.heapify(heap)
    ordered: list[_Unit] = []
    remaining = set(by_key)
    while remaining:
        if not heap:
            key = min(remaining, key=lambda k: by_key[k].section.index)
            heapq.heappush(heap, (by_key[key].section.index, key))
            indegree[key] = 0
        _, key = heapq.heappop(heap)
        if key not in remaining:
            continue
        remaining.discard(key)
        ordered.append(by_key[key])
        for dependent in after[key]:
            if dependent in remaining:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heapq.heappush(heap, (by_key[dependent].section.index, dependent))
    return ordered


# ============ NAMING ============


def _unit_slug(unit: _Unit) -> str:
    """Descriptive slug from the title, or from content keywords for generic titles."""
    title_slug = slugify(unit.section.title)
    words = [w for w in title_slug.split("-") if w]
    if words and not all(w in GENERIC_TITLE_TERMS or w.isdigit() for w in words):
        return title_slug
    text = " ".join(m.content for m in unit.members)
    keywords = [
        k for k in top_keywords(text, FILENAME_KEYWORD_COUNT * 2) if k not in GENERIC_TITLE_TERMS
    ]
    keyword_slug = slugify("-".join(keywords[:FILENAME_KEYWORD_COUNT]))
    if keyword_slug:
        return keyword_slug
    return slugify(f"{unit.section.stage.value}-{unit.section.id}")


# ============ PARTITIONING ============


def _paragraph_blocks(section: Section) -> list[Block]:
    """Split a section's content at blank lines, keeping fenced blocks whole."""
    blocks: list[Block] = []
    current: list[str] = []
    in_fence = False

    def flush() -> None:
        if current:
            text = "".join(current)
            blocks.append(Block(section.id, text, count_tokens(text)))
            current.clear()

    if not section.content:
        return [Block(section.id, "", 0)]
    for line in section.content.splitlines(keepends=True):
        if FENCE_PATTERN.match(line):
            in_fence = not in_fence
        current.append(line)
        if not in_fence and not line.strip():
            flush()
    flush()
    return blocks


def _split_oversized(block: Block, ceiling: int) -> list[Block]:
    """Break a block above the ceiling at line, then word boundaries."""
    if block.token_count <= ceiling:
        return [block]
    pieces = block.text.splitlines(keepends=True)
    if len(pieces) == 1:
        pieces = re.findall(r"\S+\s*", block.text) or [block.text]
        if len(pieces) == 1:
            return [block]
    result: list[Block] = []
    current = ""
    for piece in pieces:
        candidate = current + piece
        if current and count_tokens(candidate) > ceiling:
            result.extend(_split_oversized(Block(block.section_id, current, count_tokens(current)), ceiling))
            current = piece
        else:
            current = candidate
    if current:
        result.extend(_split_oversized(Block(block.section_id, current, count_tokens(current)), ceiling))
    return result


def _partition(blocks: list[Block], ceiling: int) -> list[list[Block]]:
    """Greedy balanced packing of blocks into parts no larger than the ceiling."""
    pieces = [piece for block in blocks for piece in _split_oversized(block, ceiling)]
    total = sum(b.token_count for b in pieces)
    target = total / max(1, math.ceil(total / ceiling))
    parts: list[list[Block]] = []
    current: list[Block] = []
    current_tokens = 0
    for piece in pieces:
        if current and (current_tokens + piece.token_count > ceiling or current_tokens >= target):
            parts.append(current)
            current, current_tokens = [], 0
        current.append(piece)
        current_tokens += piece.token_count
    if current:
        parts.append(current)
    return parts


# ============ PLANNING ============


def _emit_nodes(unit: _Unit, ceiling: int, is_root: bool) -> list[PlanNode]:
    """One node for the unit, or one per part when it is over the ceiling.

    A root that carries nothing but its own content is never partitioned;
    a root with folded descendants is held to the ceiling like any unit.
    """
    section_ids = tuple(m.id for m in unit.members)
    whole = [Block(m.id, m.content, m.token_count) for m in unit.members]
    unit_tokens = sum(b.token_count for b in whole)
    parts: list[list[Block]] = []
    if unit_tokens > ceiling and not (is_root and len(unit.members) == 1):
        fine = [block for member in unit.members for block in _paragraph_blocks(member)]
        parts = _partition(fine, ceiling)
    if len(parts) < 2:
        return [
            PlanNode(
                id="",
                title=unit.section.title,
                stage=unit.section.stage,
                primary_section=unit.section.id,
                section_ids=section_ids,
                blocks=whole,
                token_count=unit_tokens,
            )
        ]

    logger.info(
        f"Partitioning '{unit.section.title}' ({unit_tokens} tokens) into {len(parts)} parts"
    )
    nodes = []
    for k, blocks in enumerate(parts, start=1):
        title = unit.section.title if k == 1 else f"{unit.section.title} (part {k} of {len(parts)})"
        nodes.append(
            PlanNode(
                id="",
                title=title,
                stage=unit.section.stage,
                primary_section=unit.section.id,
                section_ids=tuple(dict.fromkeys(b.section_id for b in blocks)),
                blocks=blocks,
                token_count=sum(b.token_count for b in blocks),
                part=k,
                part_count=len(parts),
            )
        )
    return nodes


def _reference_tokens(unit: _Unit) -> tuple[ReferenceToken, ...]:
    tokens: list[ReferenceToken] = []
    for member in unit.members:
        for target in member.dependencies:
            tokens.append(
                ReferenceToken(RelationKind.PREREQUISITE, SECTION_TOKEN_PREFIX + target, member.id)
            )
        for target in member.references:
            tokens.append(
                ReferenceToken(RelationKind.RELATED, SECTION_TOKEN_PREFIX + target, member.id)
            )
        for kind, title in member.unresolved:
            tokens.append(ReferenceToken(RelationKind(kind), TITLE_TOKEN_PREFIX + title, member.id))
    return tuple(tokens)


def _file_names(unit: _Unit) -> None:
    for node in unit.nodes:
        if node.part is None:
            node.filename = f"{unit.slug}.md"
        else:
            node.filename = f"{unit.slug}-part-{node.part}.md"


def plan_structure(tagged: TaggedTree) -> Plan:
    """Convert a tagged tree into a Plan with final paths.

    Raises:
        PlanningError: On dependency cycles, path collisions or lost coverage
    """
    tree = tagged.tree
    check_dependency_cycles(tree)

    root_unit = _build_units(tagged)
    ceiling = tagged.ceiling

    def prepare(unit: _Unit, is_root: bool) -> None:
        unit.slug = _unit_slug(unit)
        unit.nodes = _emit_nodes(unit, ceiling, is_root)
        unit.nodes[0].tokens = _reference_tokens(unit)
        unit.children = _order_siblings(tree, unit.children)
        for position, child in enumerate(unit.children):
            child.position = position
            prepare(child, is_root=False)
        _file_names(unit)

    prepare(root_unit, is_root=True)

    # The root only gets its own file when it carries content of its own
    top_level = list(root_unit.children)
    emit_root = not top_level or len(root_unit.members) > 1
    emit_root = emit_root or _has_meaningful_content(root_unit.section)
    if emit_root:
        top_level = [root_unit] + top_level
    else:
        # Carry the root's heading into the first file so no content is lost
        first = _stage_sorted(top_level)[0].nodes[0]
        first.blocks = list(root_unit.nodes[0].blocks) + first.blocks
        first.section_ids = tuple(root_unit.nodes[0].section_ids) + first.section_ids
        first.token_count += root_unit.nodes[0].token_count
        first.tokens = root_unit.nodes[0].tokens + first.tokens

    top_level = _stage_sorted(top_level)
    present_stages = [s for s in STAGE_ORDER if any(u.section.stage == s for u in top_level)]
    for position, unit in enumerate(top_level):
        unit.position = position
        ordinal = present_stages.index(unit.section.stage) + 1
        directory = f"{ordinal:02d}-{STAGE_DIRECTORY_NAMES[unit.section.stage]}"
        _place(unit, directory, nested=unit is not root_unit)

    plan = Plan(document_tokens=tree.total_tokens, tagged=tagged)
    counter = 0

    def collect(unit: _Unit, include_children: bool) -> None:
        nonlocal counter
        for node in unit.nodes:
            counter += 1
            node.id = f"n{counter:03d}"
            plan.nodes.append(node)
        if include_children:
            for child in unit.children:
                collect(child, include_children=True)

    for unit in top_level:
        collect(unit, include_children=unit is not root_unit)

    _link_parents(top_level, root_unit)
    _redirects(plan, tree)
    _check_paths(plan)
    logger.info(
        f"Planned {len(plan.nodes)} files in "
        f"{len({n.directory for n in plan.nodes})} directories "
        f"({plan.planned_tokens}/{plan.document_tokens} tokens)"
    )
    return plan


def _stage_sorted(units: list[_Unit]) -> list[_Unit]:
    """Stable sort by canonical stage order; sibling order is kept within a stage."""
    return sorted(units, key=lambda u: STAGE_ORDER.index(u.section.stage))


def _place(unit: _Unit, directory: str, nested: bool = True) -> None:
    for node in unit.nodes:
        node.directory = directory
        node.position = unit.position
    if nested and unit.children:
        child_dir = f"{directory}/{unit.position + 1:02d}-{unit.slug}"
        for child in unit.children:
            _place(child, child_dir)


def _link_parents(top_level: list[_Unit], root_unit: _Unit) -> None:
    """Set parent ids once node ids exist (nested units point at their parent's first part)."""

    def link(unit: _Unit) -> None:
        for child in unit.children:
            for node in child.nodes:
                node.parent_id = unit.nodes[0].id
            link(child)

    for unit in top_level:
        if unit is root_unit:
            continue
        link(unit)


def _redirects(plan: Plan, tree: SectionTree) -> None:
    """Map every section (folded ones included) to the node that carries it."""
    owners: dict[str, list[str]] = {}
    for node in plan.nodes:
        for section_id in node.section_ids:
            owners.setdefault(section_id, [])
            if node.id not in owners[section_id]:
                owners[section_id].append(node.id)

    for section in tree.sections:
        node_ids = owners.get(section.id, [])
        if not node_ids:
            raise PlanningError(
                "Section is not carried by any planned file",
                rule="coverage",
                section_id=section.id,
            )
        nodes = [plan.node(nid) for nid in node_ids]
        # A section may span consecutive parts of one partitioned file only
        if len({n.primary_section for n in nodes}) > 1:
            raise PlanningError(
                f"Section is carried by several files: {', '.join(n.path for n in nodes)}",
                rule="coverage",
                section_id=section.id,
            )
        plan.section_to_node[section.id] = node_ids[0]


def _check_paths(plan: Plan) -> None:
    seen: dict[str, PlanNode] = {}
    for node in plan.nodes:
        existing = seen.get(node.path)
        if existing is not None:
            raise PlanningError(
                f"Path '{node.path}' is computed for both '{existing.title}' "
                f"({existing.primary_section}) and '{node.title}' ({node.primary_section})",
                rule="path-collision",
                section_id=node.primary_section,
                node_id=node.id,
            )
        seen[node.path] = node
