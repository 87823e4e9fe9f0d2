"""Shared pytest configuration and fixtures for docsplit tests."""

from collections.abc import Mapping

import pytest
import pytest_asyncio

from docsplit.config import settings
from docsplit.engine.core.document import SectionTree
from docsplit.engine.scoring.split_scorer import SplitScore

# Ten cl100k tokens per sentence, and no stage, variant or reference cues
SENTENCE = "The quick brown fox jumps over the lazy dog."


def filler(tokens: int, per_paragraph: int = 100) -> str:
    """Neutral prose of roughly ``tokens`` tokens in paragraphs of ``per_paragraph``."""
    sentences = max(1, tokens // 10)
    per_para = max(1, per_paragraph // 10)
    paragraphs = []
    for start in range(0, sentences, per_para):
        paragraphs.append(" ".join([SENTENCE] * min(per_para, sentences - start)))
    return "\n\n".join(paragraphs)


def fixed_scores(tree: SectionTree, values: Mapping[str, float], default: float = 1.0) -> dict:
    """Precomputed SplitScores keyed by section id, looked up by section title."""
    scores = {}
    for section in tree.sections[1:]:
        value = values.get(section.title, default)
        scores[section.id] = SplitScore(section_id=section.id, criteria=(), raw=value, value=value)
    return scores


@pytest.fixture
def five_stage_document() -> str:
    """Five top-level sections, each declaring a distinct stage, about 2,200 tokens each."""
    parts = ["# Service Handbook\n"]
    for title, stage in (
        ("Installation", "setup"),
        ("Core Concepts", "concept"),
        ("Building the Service", "implementation"),
        ("Testing Strategy", "testing"),
        ("Production Rollout", "deployment"),
    ):
        parts.append(f"## {title}\n\n<!-- stage: {stage} -->\n\n{filler(2200)}\n")
    return "\n".join(parts)


@pytest.fixture
def single_topic_document() -> str:
    """About 3,000 words on one topic, with no subsections."""
    return (
        "# Caching Layer\n\n"
        "The caching layer keeps hot records in memory.\n\n"
        f"{filler(3000)}\n\n"
        "As described above, entries expire after a fixed interval.\n\n"
        "As mentioned earlier, entries are grouped by key prefix.\n"
    )


@pytest.fixture
def folded_topics_document() -> str:
    """A root whose four short topics all fold into it, about 3,600 tokens together."""
    parts = ["# Platform Handbook\n\nWhat the platform offers.\n"]
    for title in ("Alpha Topic", "Beta Topic", "Gamma Topic", "Delta Topic"):
        parts.append(f"## {title}\n\n{filler(900)}\n")
    return "\n".join(parts)


@pytest.fixture
def cyclic_document() -> str:
    return (
        "# Cyclic Guide\n\n"
        "Two sections that require each other.\n\n"
        "## Alpha Module\n\n<!-- requires: Beta Module -->\n\nAlpha content.\n\n"
        "## Beta Module\n\n<!-- requires: Alpha Module -->\n\nBeta content.\n"
    )


@pytest.fixture
def folded_reference_document() -> str:
    """A related reference that targets a subsection folded into its parent."""
    return (
        "# Platform Guide\n\n"
        "Everything about the platform.\n\n"
        "## Installation\n\n<!-- stage: setup -->\n\nInstall the package first.\n\n"
        "## Core Concepts\n\n<!-- stage: concept -->\n\nThe platform is built on records.\n\n"
        "### Cache Keys\n\nKeys are derived from record ids.\n\n"
        "## Building Pipelines\n\n<!-- stage: implementation -->\n<!-- related: Cache Keys -->\n\n"
        "Pipelines read records through the cache.\n"
    )


@pytest.fixture
def oversized_section_document() -> str:
    """One section of about 6,000 tokens in 60 paragraphs."""
    return (
        "# Data Guide\n\n"
        "Short introduction to the guide.\n\n"
        "## Bulk Import\n\n"
        f"{filler(6000)}\n"
    )


@pytest_asyncio.fixture
async def output_root(tmp_path, monkeypatch):
    """Point the service output root at a temporary directory."""
    monkeypatch.setattr(settings, "output_root", str(tmp_path))
    return tmp_path


def plan_for(text: str, values: Mapping[str, float] | None = None, ceiling: int = 2500):
    """Extract, decide (with fixed scores when ``values`` is given) and plan."""
    from docsplit.engine.core.extractor import extract_markdown
    from docsplit.engine.decision import decide
    from docsplit.engine.planner import plan_structure

    tree = extract_markdown(text)
    scores = fixed_scores(tree, values) if values is not None else None
    return plan_structure(decide(tree, ceiling=ceiling, scores=scores))
