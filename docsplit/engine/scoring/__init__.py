"""Split scoring for the restructuring engine.

This package provides:
- Constant tables (criterion weights, stage cues, naming and schema tables)
- Topic keyword helpers and slugs
- The six-criterion SplitScore

Usage:
    from docsplit.engine.scoring import (
        SCORING_WEIGHTS,
        score_section,
        score_sections,
        slugify,
    )
"""

from .constants import (
    DEFAULT_FILE_TOKEN_CEILING,
    DEFAULT_SPLIT_THRESHOLD,
    GENERIC_TITLE_TERMS,
    SCORING_WEIGHTS,
    STAGE_ORDER,
    STOP_WORDS,
    TIE_BREAK_BAND,
    WORKFLOW_TEMPLATES,
)
from .split_scorer import (
    SplitScore,
    criterion_values,
    score_section,
    score_sections,
    weighted_average,
)
from .topics import (
    anchor_slug,
    extract_keywords,
    mentions_title,
    slugify,
    stem_keyword,
    top_keywords,
)

__all__ = [
    # Constants
    "DEFAULT_FILE_TOKEN_CEILING",
    "DEFAULT_SPLIT_THRESHOLD",
    "GENERIC_TITLE_TERMS",
    "SCORING_WEIGHTS",
    "STAGE_ORDER",
    "STOP_WORDS",
    "TIE_BREAK_BAND",
    "WORKFLOW_TEMPLATES",
    # Split scorer
    "SplitScore",
    "criterion_values",
    "score_section",
    "score_sections",
    "weighted_average",
    # Topics
    "anchor_slug",
    "extract_keywords",
    "mentions_title",
    "slugify",
    "stem_keyword",
    "top_keywords",
]
