"""Split decision engine.

Applies the threshold rule top-down over the section tree:

- SPLIT when the SplitScore is above the threshold
- SPLIT when the subtree token estimate exceeds the file ceiling, whatever
  the score (an overriding rule, not part of the weighted average)
- KEEP otherwise; the section and its whole subtree fold into the parent's
  surviving file and are never examined again

Children of a SPLIT section are scored independently against the same rule.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..models.enums import DecisionReason, SplitTag
from .core.document import SectionTree
from .scoring.constants import DEFAULT_FILE_TOKEN_CEILING, DEFAULT_SPLIT_THRESHOLD
from .scoring.split_scorer import SplitScore, score_section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    """Tag and reason for one section."""

    section_id: str
    tag: SplitTag
    reason: DecisionReason
    score: SplitScore | None = None


@dataclass
class TaggedTree:
    """Section tree plus a decision for every section.

    Attributes:
        tree: The read-only section tree
        decisions: Section id -> Decision
        threshold: Split threshold used
        ceiling: File token ceiling used
    """

    tree: SectionTree
    decisions: dict[str, Decision] = field(default_factory=dict)
    threshold: float = DEFAULT_SPLIT_THRESHOLD
    ceiling: int = DEFAULT_FILE_TOKEN_CEILING

    def tag(self, section_id: str) -> SplitTag:
        return self.decisions[section_id].tag

    def is_boundary(self, section_id: str) -> bool:
        """Whether the section starts its own file (ROOT or SPLIT)."""
        return self.decisions[section_id].tag in (SplitTag.ROOT, SplitTag.SPLIT)

    def owner(self, index: int) -> int:
        """Index of the nearest boundary section at or above ``index``."""
        current = index
        while not self.is_boundary(self.tree[current].id):
            parent = self.tree[current].parent
            if parent is None:
                break
            current = parent
        return current


def decide(
    tree: SectionTree,
    threshold: float = DEFAULT_SPLIT_THRESHOLD,
    ceiling: int = DEFAULT_FILE_TOKEN_CEILING,
    weights: Mapping[str, float] | None = None,
    scores: Mapping[str, SplitScore] | None = None,
) -> TaggedTree:
    """Tag every section SPLIT, KEEP or ROOT.

    Args:
        tree: Extracted section tree
        threshold: A section splits when its SplitScore is strictly above this
        ceiling: A section whose subtree exceeds this many tokens always splits
        weights: Criterion weight overrides
        scores: Precomputed scores keyed by section id (computed lazily otherwise)

    Returns:
        TaggedTree with a decision for each section
    """
    tagged = TaggedTree(tree=tree, threshold=threshold, ceiling=ceiling)
    tagged.decisions[tree.root.id] = Decision(tree.root.id, SplitTag.ROOT, DecisionReason.ROOT)

    pending = list(tree.root.children)
    while pending:
        index = pending.pop(0)
        section = tree[index]
        score = scores.get(section.id) if scores is not None else None
        if score is None:
            score = score_section(tree, section, threshold, weights)

        subtree_tokens = tree.subtree_weight(index)
        if score.value > threshold:
            decision = Decision(section.id, SplitTag.SPLIT, DecisionReason.SCORE, score)
        elif subtree_tokens > ceiling:
            decision = Decision(section.id, SplitTag.SPLIT, DecisionReason.CEILING, score)
        elif score.tie_break:
            decision = Decision(section.id, SplitTag.KEEP, DecisionReason.TIE_BREAK, score)
        else:
            decision = Decision(section.id, SplitTag.KEEP, DecisionReason.BELOW_THRESHOLD, score)
        tagged.decisions[section.id] = decision
        logger.debug(
            f"{section.id} '{section.title}' -> {decision.tag} ({decision.reason}, "
            f"score={score.value}, tokens={subtree_tokens})"
        )

        if decision.tag == SplitTag.SPLIT:
            pending.extend(section.children)
        else:
            for folded in list(tree.walk(index))[1:]:
                tagged.decisions[folded.id] = Decision(
                    folded.id, SplitTag.KEEP, DecisionReason.FOLDED
                )

    split_count = sum(1 for d in tagged.decisions.values() if d.tag == SplitTag.SPLIT)
    logger.info(
        f"Decided {len(tagged.decisions)} sections: {split_count} split, "
        f"threshold={threshold}, ceiling={ceiling}"
    )
    return tagged
