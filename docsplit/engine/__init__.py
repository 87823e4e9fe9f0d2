"""Restructuring engine.

Stages, leaves first: extractor (core), scorer (scoring), decision engine,
structure planner, cross-reference resolver, file synthesizer and index
generator. ``RestructureEngine`` in ``pipeline`` runs them in order.
"""

from .errors import (
    AnalysisError,
    DocsplitError,
    LinkResolutionError,
    PlanningError,
    SynthesisCollision,
)
from .pipeline import Analysis, RestructureEngine, build_report, sections_result

__all__ = [
    "Analysis",
    "RestructureEngine",
    "build_report",
    "sections_result",
    # Errors
    "DocsplitError",
    "AnalysisError",
    "PlanningError",
    "LinkResolutionError",
    "SynthesisCollision",
]
