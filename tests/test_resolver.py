"""Tests for cross-reference resolution."""

import pytest

from docsplit.engine.errors import LinkResolutionError
from docsplit.engine.resolver import resolve
from docsplit.models.enums import RelationKind

from .conftest import plan_for

SPLIT_ALL = {"Installation": 9.0, "Core Concepts": 9.0, "Building Pipelines": 9.0}


class TestNavigation:
    """Tests for implicit previous/next/up links."""

    def test_prev_next_chain(self, five_stage_document):
        plan = plan_for(five_stage_document)
        links = resolve(plan)
        paths = [n.path for n in plan.nodes]
        for position, path in enumerate(paths):
            expected_prev = paths[position - 1] if position > 0 else None
            expected_next = paths[position + 1] if position < len(paths) - 1 else None
            assert links.single(path, RelationKind.PREVIOUS) == expected_prev
            assert links.single(path, RelationKind.NEXT) == expected_next
            assert links.single(path, RelationKind.UP) is None

    def test_up_points_to_parent_file(self):
        text = "# Handbook\n\nIntro.\n\n## Alpha\n\nA.\n\n### Alpha One\n\nA1.\n"
        plan = plan_for(text, {"Alpha": 8.0, "Alpha One": 9.0})
        links = resolve(plan)
        assert links.single("01-overview/02-alpha/alpha-one.md", RelationKind.UP) == (
            "01-overview/alpha.md"
        )


class TestExplicitReferences:
    """Tests for declared and detected references."""

    def test_reference_to_folded_section_lands_on_parent(self, folded_reference_document):
        plan = plan_for(folded_reference_document, SPLIT_ALL)
        links = resolve(plan)
        source = next(n.path for n in plan.nodes if n.title == "Building Pipelines")
        target = next(n.path for n in plan.nodes if n.title == "Core Concepts")
        assert links.of_kind(source, RelationKind.RELATED) == [target]

    def test_every_target_exists(self, folded_reference_document):
        plan = plan_for(folded_reference_document, SPLIT_ALL)
        paths = {n.path for n in plan.nodes}
        for reference in resolve(plan).references:
            assert reference.source_path in paths
            assert reference.target_path in paths

    def test_self_reference_is_dropped(self):
        text = (
            "# Handbook\n\nIntro.\n\n"
            "## Storage\n\n<!-- related: Storage Details -->\n\nA.\n\n### Storage Details\n\nB.\n"
        )
        plan = plan_for(text, {"Storage": 9.0})
        links = resolve(plan)
        storage = next(n.path for n in plan.nodes if n.title == "Storage")
        assert links.of_kind(storage, RelationKind.RELATED) == []

    def test_prerequisite_wins_over_related(self):
        text = (
            "# Handbook\n\nIntro.\n\n"
            "## Basics\n\nA.\n\n"
            "## Advanced\n\n<!-- related: Basics -->\n<!-- requires: Basics -->\n\nB.\n"
        )
        plan = plan_for(text, {"Basics": 9.0, "Advanced": 9.0})
        links = resolve(plan)
        advanced = next(n.path for n in plan.nodes if n.title == "Advanced")
        basics = next(n.path for n in plan.nodes if n.title == "Basics")
        assert links.of_kind(advanced, RelationKind.PREREQUISITE) == [basics]
        assert links.of_kind(advanced, RelationKind.RELATED) == []

    def test_unmatched_declared_target_fails(self):
        text = "# Handbook\n\nIntro.\n\n## Alpha\n\n<!-- requires: Missing Chapter -->\n\nA.\n"
        plan = plan_for(text, {"Alpha": 9.0})
        with pytest.raises(LinkResolutionError) as exc_info:
            resolve(plan)
        assert exc_info.value.rule == "unresolved-reference"
        assert "Missing Chapter" in str(exc_info.value)
        assert exc_info.value.node_id is not None
