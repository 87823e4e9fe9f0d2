"""Split scoring for candidate section boundaries.

A candidate boundary is a section and its parent. Six criteria, each on a
1-10 scale, are combined into a weighted average:

- independence (HIGH): can the section be read without its siblings
- token_count (MEDIUM): large sections benefit from their own file
- workflow_stage (HIGH): a different task phase than the parent
- implementation_variant (HIGH): a language/platform variant of its siblings
- reference_frequency (MEDIUM): other sections cite it, so it works as a hub
- cross_reference_burden (HIGH, inverted): links needed if it were separate

``score_section`` is a pure function of section metadata. Scoring siblings
in any order (or in parallel) gives identical results.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ..core.document import Section, SectionTree
from .constants import (
    BURDEN_STEP,
    CRITERION_MAX,
    CRITERION_MIN,
    CROSS_REFERENCE_BURDEN,
    DEFAULT_SPLIT_THRESHOLD,
    IMPLEMENTATION_VARIANT,
    INDEPENDENCE,
    REFERENCE_FREQUENCY,
    REFERENCE_FREQUENCY_STEP,
    SCORING_WEIGHTS,
    STAGE_DISTINCT,
    STAGE_SAME_AS_PARENT,
    STAGE_SHARED_WITH_SIBLING,
    TIE_BREAK_BAND,
    TOKEN_COUNT,
    TOKEN_SCORE_SATURATION,
    VARIANT_DISTINCT,
    VARIANT_NONE,
    VARIANT_SHARED,
    WORKFLOW_STAGE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitScore:
    """Weighted split score for one section. Recompute, never patch.

    Attributes:
        section_id: Scored section
        criteria: Criterion name -> value (1-10)
        raw: Weighted average before the tie-break band
        value: Final score compared against the threshold
        tie_break: Whether the raw score fell inside the tie-break band
    """

    section_id: str
    criteria: tuple[tuple[str, float], ...]
    raw: float
    value: float
    tie_break: bool = False

    def criteria_dict(self) -> dict[str, float]:
        return dict(self.criteria)


def _clamp(value: float) -> float:
    return min(CRITERION_MAX, max(CRITERION_MIN, value))


def _citing_sections(tree: SectionTree, section: Section) -> int:
    """Number of other sections that reference or depend on this one."""
    return sum(
        1
        for other in tree.sections
        if other.id != section.id
        and (section.id in other.references or section.id in other.dependencies)
    )


def _boundary_links(tree: SectionTree, section: Section) -> int:
    """Links that would cross the boundary if this subtree became a file."""
    inside = tree.subtree_ids(section.index)
    outgoing = 0
    for member in tree.walk(section.index):
        outgoing += sum(1 for target in member.dependencies if target not in inside)
        outgoing += sum(1 for target in member.references if target not in inside)
        outgoing += len(member.unresolved)
    incoming = 0
    for other in tree.sections:
        if other.id in inside:
            continue
        incoming += sum(1 for target in other.dependencies if target in inside)
        incoming += sum(1 for target in other.references if target in inside)
    return outgoing + incoming


def criterion_values(tree: SectionTree, section: Section) -> dict[str, float]:
    """Compute the six criteria for a non-root section."""
    parent = tree[section.parent] if section.parent is not None else None
    siblings = tree.siblings(section.index)

    tokens = tree.subtree_weight(section.index)
    if tokens >= TOKEN_SCORE_SATURATION:
        token_value = CRITERION_MAX
    else:
        token_value = CRITERION_MIN + 9.0 * tokens / TOKEN_SCORE_SATURATION

    if parent is not None and section.stage == parent.stage:
        stage_value = STAGE_SAME_AS_PARENT
    elif any(s.stage == section.stage for s in siblings):
        stage_value = STAGE_SHARED_WITH_SIBLING
    else:
        stage_value = STAGE_DISTINCT

    if section.variant is None:
        variant_value = VARIANT_NONE
    elif (parent is not None and parent.variant == section.variant) or any(
        s.variant == section.variant for s in siblings
    ):
        variant_value = VARIANT_SHARED
    else:
        variant_value = VARIANT_DISTINCT

    frequency_value = CRITERION_MIN + REFERENCE_FREQUENCY_STEP * _citing_sections(tree, section)
    burden = CRITERION_MIN + BURDEN_STEP * _boundary_links(tree, section)

    return {
        INDEPENDENCE: _clamp(section.independence),
        TOKEN_COUNT: _clamp(token_value),
        WORKFLOW_STAGE: stage_value,
        IMPLEMENTATION_VARIANT: variant_value,
        REFERENCE_FREQUENCY: _clamp(frequency_value),
        # Inverted: 1 link-free boundary scores 10, a heavy one scores 1
        CROSS_REFERENCE_BURDEN: _clamp(CRITERION_MAX + CRITERION_MIN - _clamp(burden)),
    }


def weighted_average(criteria: Mapping[str, float], weights: Mapping[str, float]) -> float:
    total_weight = sum(weights.get(name, 0.0) for name in criteria)
    if total_weight <= 0:
        return 0.0
    return sum(value * weights.get(name, 0.0) for name, value in criteria.items()) / total_weight


def score_section(
    tree: SectionTree,
    section: Section,
    threshold: float = DEFAULT_SPLIT_THRESHOLD,
    weights: Mapping[str, float] | None = None,
) -> SplitScore:
    """Score one candidate boundary.

    When the raw weighted average lies within ``TIE_BREAK_BAND`` of the
    threshold the final value is clamped to at most the threshold, so the
    section is kept unified.
    """
    effective = dict(SCORING_WEIGHTS)
    if weights:
        effective.update(weights)

    criteria = criterion_values(tree, section)
    raw = round(weighted_average(criteria, effective), 4)
    tie_break = abs(raw - threshold) <= TIE_BREAK_BAND
    value = min(raw, threshold) if tie_break else raw

    logger.debug(
        f"Scored {section.id} '{section.title}': raw={raw} final={value}"
        f"{' (tie-break)' if tie_break else ''}"
    )
    return SplitScore(
        section_id=section.id,
        criteria=tuple(sorted(criteria.items())),
        raw=raw,
        value=value,
        tie_break=tie_break,
    )


def score_sections(
    tree: SectionTree,
    threshold: float = DEFAULT_SPLIT_THRESHOLD,
    weights: Mapping[str, float] | None = None,
) -> dict[str, SplitScore]:
    """Score every non-root section, keyed by section id."""
    return {
        section.id: score_section(tree, section, threshold, weights)
        for section in tree.sections
        if section.parent is not None
    }
