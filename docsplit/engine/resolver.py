"""Cross-reference resolution.

Runs after the planner has fixed every path. Each symbolic ReferenceToken is
mapped through the plan's section-to-node redirect table, so a reference to
a folded section lands on the node that now carries it. Implicit navigation
(previous/next in reading order, up to the parent node) is added last.
"""

import logging
from dataclasses import dataclass

from ..models.enums import RelationKind
from .core.document import SectionTree
from .errors import LinkResolutionError
from .planner import SECTION_TOKEN_PREFIX, TITLE_TOKEN_PREFIX, Plan, PlanNode

logger = logging.getLogger(__name__)

EXPLICIT_KINDS = (RelationKind.PREREQUISITE, RelationKind.RELATED)


@dataclass(frozen=True)
class ResolvedReference:
    """A concrete link between two planned files."""

    source_path: str
    target_path: str
    kind: RelationKind


@dataclass
class ResolvedLinks:
    """Resolved references grouped by source path.

    Attributes:
        references: Every resolved reference in plan order
        by_source: Source path -> references leaving that file
    """

    references: list[ResolvedReference]
    by_source: dict[str, list[ResolvedReference]]

    def of_kind(self, source_path: str, kind: RelationKind) -> list[str]:
        return [r.target_path for r in self.by_source.get(source_path, []) if r.kind == kind]

    def single(self, source_path: str, kind: RelationKind) -> str | None:
        targets = self.of_kind(source_path, kind)
        return targets[0] if targets else None


def _target_node(plan: Plan, tree: SectionTree | None, node: PlanNode, target: str) -> PlanNode:
    if target.startswith(SECTION_TOKEN_PREFIX):
        section_id = target[len(SECTION_TOKEN_PREFIX) :]
        node_id = plan.section_to_node.get(section_id)
        if node_id is not None:
            return plan.node(node_id)
        raise LinkResolutionError(
            f"Reference to section {section_id} has no surviving file",
            rule="unresolved-reference",
            section_id=section_id,
            node_id=node.id,
        )

    title = target[len(TITLE_TOKEN_PREFIX) :] if target.startswith(TITLE_TOKEN_PREFIX) else target
    source_section = node.primary_section
    if tree is not None and tree.has_id(source_section):
        source_title = tree.by_id(source_section).title
    else:
        source_title = node.title
    raise LinkResolutionError(
        f"'{source_title}' declares a reference to '{title}', which matches no section "
        f"(file {node.path})",
        rule="unresolved-reference",
        section_id=source_section,
        node_id=node.id,
    )


def resolve(plan: Plan) -> ResolvedLinks:
    """Turn every reference token into a concrete path.

    Raises:
        LinkResolutionError: If a token has no surviving target
    """
    tree = plan.tagged.tree if plan.tagged is not None else None
    references: list[ResolvedReference] = []
    by_source: dict[str, list[ResolvedReference]] = {}

    for node in plan.nodes:
        explicit: dict[str, RelationKind] = {}
        for token in node.tokens:
            target = _target_node(plan, tree, node, token.target)
            if target.id == node.id:
                continue
            # Prerequisite wins over related for the same target
            current = explicit.get(target.path)
            if current is None or (
                current == RelationKind.RELATED and token.kind == RelationKind.PREREQUISITE
            ):
                explicit[target.path] = token.kind

        links = [ResolvedReference(node.path, path, kind) for path, kind in explicit.items()]
        by_source[node.path] = links
        references.extend(links)

    for position, node in enumerate(plan.nodes):
        navigation = []
        if position > 0:
            navigation.append(
                ResolvedReference(node.path, plan.nodes[position - 1].path, RelationKind.PREVIOUS)
            )
        if position < len(plan.nodes) - 1:
            navigation.append(
                ResolvedReference(node.path, plan.nodes[position + 1].path, RelationKind.NEXT)
            )
        if node.parent_id is not None:
            navigation.append(
                ResolvedReference(node.path, plan.node(node.parent_id).path, RelationKind.UP)
            )
        by_source[node.path].extend(navigation)
        references.extend(navigation)

    logger.info(
        f"Resolved {len(references)} references across {len(plan.nodes)} files "
        f"({sum(1 for r in references if r.kind in EXPLICIT_KINDS)} explicit)"
    )
    return ResolvedLinks(references=references, by_source=by_source)
