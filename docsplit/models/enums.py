"""Enumeration types for docsplit."""

from enum import StrEnum


class ToolName(StrEnum):
    """Available docsplit tools."""

    DOCSPLIT_SECTIONS = "docsplit_sections"
    DOCSPLIT_ANALYZE = "docsplit_analyze"
    DOCSPLIT_MATERIALIZE = "docsplit_materialize"


class WorkflowStage(StrEnum):
    """Coarse task phase of a section.

    Declaration order is the canonical workflow order used for directory
    ordinals (setup before concepts before implementation before reference).
    """

    OVERVIEW = "overview"
    SETUP = "setup"
    CONCEPT = "concept"
    IMPLEMENTATION = "implementation"
    TESTING = "testing"
    DEPLOYMENT = "deployment"
    TROUBLESHOOTING = "troubleshooting"
    REFERENCE = "reference"


class SplitTag(StrEnum):
    """Binary decision attached to a section (plus the root marker)."""

    ROOT = "ROOT"
    SPLIT = "SPLIT"
    KEEP = "KEEP"


class DecisionReason(StrEnum):
    """Why a section received its tag."""

    ROOT = "root"
    SCORE = "score"  # SplitScore above threshold
    CEILING = "ceiling"  # Token ceiling override
    TIE_BREAK = "tie_break"  # Raw score inside the tie-break band
    BELOW_THRESHOLD = "below_threshold"
    FOLDED = "folded"  # Ancestor was kept; never examined


class RelationKind(StrEnum):
    """Relation carried by a resolved reference."""

    PREREQUISITE = "prerequisite"
    RELATED = "related"
    NEXT = "next"
    PREVIOUS = "previous"
    UP = "up"


class RunMode(StrEnum):
    """Pipeline output mode."""

    ANALYZE_ONLY = "analyze-only"
    MATERIALIZE = "materialize"


class CollisionPolicy(StrEnum):
    """What to do when a target path already exists."""

    OVERWRITE = "overwrite"
    DIFF_REPORT = "diff-report"
    FAIL = "fail"


class ManifestAction(StrEnum):
    """Outcome recorded for one path in a materialize manifest."""

    CREATED = "created"
    OVERWRITTEN = "overwritten"
    UNCHANGED = "unchanged"
    WOULD_CHANGE = "would_change"
