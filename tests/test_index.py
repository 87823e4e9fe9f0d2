"""Tests for index generation."""

import pytest

from docsplit.engine.index import build_index, summarize, workflow_paths
from docsplit.engine.resolver import resolve
from docsplit.engine.synthesizer import render_files
from docsplit.models.enums import WorkflowStage
from docsplit.models.requests import WorkflowTemplate

from .conftest import plan_for


@pytest.fixture
def files(five_stage_document):
    plan = plan_for(five_stage_document)
    return render_files(plan, resolve(plan))


class TestBuildIndex:
    """Tests for the rendered index."""

    def test_heading_and_counts(self, files):
        index = build_index(files, title="Service Handbook")
        assert index.path == "INDEX.md"
        assert index.content.startswith("# Service Handbook Index\n\n5 files in 5 directories.\n")

    def test_directory_tables(self, files):
        index = build_index(files, title="Service Handbook")
        assert list(index.groups) == [
            "01-setup",
            "02-concepts",
            "03-implementation",
            "04-testing",
            "05-deployment",
        ]
        assert "### 02-concepts/" in index.content
        assert "| [Core Concepts](02-concepts/core-concepts.md) | concepts |" in index.content

    def test_every_file_listed(self, files):
        index = build_index(files)
        for file in files:
            assert f"]({file.path})" in index.content

    def test_canonical_workflow_paths(self, files):
        index = build_index(files)
        workflows = {w.name: w.paths for w in index.workflows}
        assert workflows["quick-start"] == [
            "01-setup/installation.md",
            "03-implementation/building-the-service.md",
        ]
        assert workflows["full-build"] == [f.path for f in files]
        assert workflows["debug-optimize"] == ["04-testing/testing-strategy.md"]
        assert "## Workflow Paths" in index.content
        assert "### quick-start" in index.content

    def test_nested_index_links_are_relative(self, files):
        index = build_index(files, index_filename="docs/INDEX.md")
        assert "](../01-setup/installation.md)" in index.content


class TestWorkflowPaths:
    """Tests for template assembly."""

    def test_template_without_matches_is_omitted(self, files):
        templates = [
            WorkflowTemplate(name="ops", stages=[WorkflowStage.TROUBLESHOOTING]),
            WorkflowTemplate(name="learn", stages=[WorkflowStage.CONCEPT, WorkflowStage.TESTING]),
        ]
        result = workflow_paths(files, templates)
        assert [w.name for w in result] == ["learn"]
        assert result[0].paths == ["02-concepts/core-concepts.md", "04-testing/testing-strategy.md"]

    def test_custom_templates_replace_canonical(self, files):
        index = build_index(
            files, templates=[WorkflowTemplate(name="ship", stages=[WorkflowStage.DEPLOYMENT])]
        )
        assert [w.name for w in index.workflows] == ["ship"]

    def test_no_workflow_section_when_nothing_matches(self, files):
        index = build_index(
            files, templates=[WorkflowTemplate(name="ops", stages=[WorkflowStage.REFERENCE])]
        )
        assert "## Workflow Paths" not in index.content


def test_summary_uses_purpose(files):
    file = files[0]
    assert summarize(file) == file.front_matter["Purpose"]
