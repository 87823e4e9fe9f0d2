"""Tests for file synthesis and the all-or-nothing writer."""

import os

import pytest

from docsplit.engine import synthesizer
from docsplit.engine.errors import SynthesisCollision
from docsplit.engine.resolver import resolve
from docsplit.engine.synthesizer import (
    OutputFile,
    diff_summary,
    extract_purpose,
    parse_front_matter,
    relative_link,
    render_files,
    write_outputs,
)
from docsplit.models.enums import CollisionPolicy, ManifestAction

from .conftest import plan_for

SPLIT_ALL = {"Installation": 9.0, "Core Concepts": 9.0, "Building Pipelines": 9.0}


@pytest.fixture
def rendered(folded_reference_document):
    plan = plan_for(folded_reference_document, SPLIT_ALL)
    files = render_files(plan, resolve(plan))
    return {f.title: f for f in files}


class TestRendering:
    """Tests for front matter, body and footer."""

    def test_paths(self, rendered):
        assert [f.path for f in rendered.values()] == [
            "01-overview/platform-guide.md",
            "02-setup/installation.md",
            "03-concepts/core-concepts.md",
            "04-implementation/building-pipelines.md",
        ]

    def test_front_matter_keys_in_order(self, rendered):
        front_matter = parse_front_matter(rendered["Building Pipelines"].content)
        assert list(front_matter) == ["Purpose", "Prerequisites", "Related Files", "Agent Use Case"]
        assert front_matter["Purpose"] == "Pipelines read records through the cache."
        assert front_matter["Prerequisites"] == []
        assert front_matter["Related Files"] == ["03-concepts/core-concepts.md"]
        assert "Building Pipelines" in front_matter["Agent Use Case"]

    def test_footer_links_are_relative(self, rendered):
        footer = rendered["Building Pipelines"].footer
        assert "- **Previous**: [Core Concepts](../03-concepts/core-concepts.md)" in footer
        assert "- **Next**: none" in footer
        assert "- **Up**: none" in footer

    def test_first_file_has_no_previous(self, rendered):
        footer = rendered["Platform Guide"].footer
        assert "- **Previous**: none" in footer
        assert "- **Next**: [Installation](../02-setup/installation.md)" in footer

    def test_body_carries_folded_subsection(self, rendered):
        body = rendered["Core Concepts"].body
        assert "### Cache Keys" in body
        assert "Keys are derived from record ids." in body

    def test_content_layout(self, rendered):
        file = rendered["Installation"]
        assert file.content.startswith("---\nPurpose: Install the package first.\n")
        assert file.content.endswith(file.footer)
        assert f"\n{file.body}\n---\n\n" in file.content


class TestPurpose:
    """Tests for Purpose extraction."""

    def test_skips_headings_and_directives(self):
        body = "## Setup\n\n<!-- stage: setup -->\n\nRun the installer. Then reboot.\n"
        assert extract_purpose(body, "Setup") == "Run the installer."

    def test_skips_code_fences(self):
        body = "## Usage\n\n```\nprint('x')\n```\n\n- Call the client with a token.\n"
        assert extract_purpose(body, "Usage") == "Call the client with a token."

    def test_long_sentence_is_truncated(self):
        body = " ".join(["word"] * 50) + "."
        purpose = extract_purpose(body, "Long")
        assert purpose.endswith("...")
        assert len(purpose.split()) == 30

    def test_falls_back_to_title(self):
        assert extract_purpose("## Appendix\n", "Appendix") == "Covers Appendix."


def test_relative_link():
    assert relative_link("01-setup/a.md", "02-concepts/b.md") == "../02-concepts/b.md"
    assert relative_link("01-setup/a.md", "01-setup/b.md") == "b.md"
    assert relative_link("INDEX.md", "01-setup/a.md") == "01-setup/a.md"


class TestWriteOutputs:
    """Tests for collision policies and staged writes."""

    def test_creates_files_and_directories(self, tmp_path):
        outputs = [OutputFile("01-setup/a.md", "A\n"), OutputFile("INDEX.md", "I\n")]
        outcome = write_outputs(outputs, tmp_path)
        assert [e.action for e in outcome.manifest.entries] == [ManifestAction.CREATED] * 2
        assert (tmp_path / "01-setup" / "a.md").read_text() == "A\n"
        assert not list(tmp_path.rglob("*.tmp"))

    def test_identical_rerun_is_unchanged(self, tmp_path):
        outputs = [OutputFile("a.md", "A\n")]
        write_outputs(outputs, tmp_path)
        outcome = write_outputs(outputs, tmp_path, CollisionPolicy.FAIL)
        assert outcome.manifest.entries[0].action == ManifestAction.UNCHANGED
        assert outcome.written == []

    def test_diff_report_leaves_file_untouched(self, tmp_path):
        (tmp_path / "a.md").write_text("old line\n")
        outcome = write_outputs([OutputFile("a.md", "new line\n")], tmp_path)
        entry = outcome.manifest.entries[0]
        assert entry.action == ManifestAction.WOULD_CHANGE
        assert entry.diff_summary.startswith("+1 -1 lines")
        assert (tmp_path / "a.md").read_text() == "old line\n"
        assert outcome.manifest.differences == [entry]

    def test_overwrite_replaces_content(self, tmp_path):
        (tmp_path / "a.md").write_text("old\n")
        outcome = write_outputs([OutputFile("a.md", "new\n")], tmp_path, CollisionPolicy.OVERWRITE)
        assert outcome.manifest.entries[0].action == ManifestAction.OVERWRITTEN
        assert (tmp_path / "a.md").read_text() == "new\n"

    def test_fail_policy_writes_nothing(self, tmp_path):
        (tmp_path / "a.md").write_text("old\n")
        outputs = [OutputFile("a.md", "new\n"), OutputFile("b/c.md", "C\n")]
        with pytest.raises(SynthesisCollision) as exc_info:
            write_outputs(outputs, tmp_path, CollisionPolicy.FAIL)
        assert exc_info.value.paths == ["a.md"]
        assert exc_info.value.rule == "target-exists"
        assert not (tmp_path / "b").exists()
        assert (tmp_path / "a.md").read_text() == "old\n"

    def test_failed_commit_removes_staged_files(self, tmp_path, monkeypatch):
        def refuse(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(synthesizer.os, "replace", refuse)
        target = tmp_path / "out"
        with pytest.raises(OSError, match="disk full"):
            write_outputs([OutputFile("01-setup/a.md", "A\n"), OutputFile("b.md", "B\n")], target)
        assert not target.exists()

    def test_partial_commit_is_undone(self, tmp_path, monkeypatch):
        monkeypatch.setattr(synthesizer.os, "replace", failing_replace(2))
        target = tmp_path / "out"
        with pytest.raises(OSError, match="disk full"):
            write_outputs([OutputFile("docs/a.md", "A\n"), OutputFile("docs/b.md", "B\n")], target)
        assert not target.exists()

    @pytest.mark.parametrize("failing_call", [1, 2, 3, 4])
    def test_partial_overwrite_restores_originals(self, tmp_path, monkeypatch, failing_call):
        (tmp_path / "a.md").write_text("old a\n")
        (tmp_path / "b.md").write_text("old b\n")
        monkeypatch.setattr(synthesizer.os, "replace", failing_replace(failing_call))
        outputs = [OutputFile("a.md", "new a\n"), OutputFile("b.md", "new b\n")]
        with pytest.raises(OSError, match="disk full"):
            write_outputs(outputs, tmp_path, CollisionPolicy.OVERWRITE)
        assert (tmp_path / "a.md").read_text() == "old a\n"
        assert (tmp_path / "b.md").read_text() == "old b\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["a.md", "b.md"]

    def test_overwrite_leaves_no_backups(self, tmp_path):
        (tmp_path / "a.md").write_text("old\n")
        write_outputs([OutputFile("a.md", "new\n")], tmp_path, CollisionPolicy.OVERWRITE)
        assert [p.name for p in tmp_path.iterdir()] == ["a.md"]
        assert (tmp_path / "a.md").read_text() == "new\n"


def failing_replace(failing_call):
    """An ``os.replace`` that raises on the given call and behaves normally otherwise."""
    real_replace = os.replace
    calls = {"count": 0}

    def replace(src, dst):
        calls["count"] += 1
        if calls["count"] == failing_call:
            raise OSError("disk full")
        return real_replace(src, dst)

    return replace


def test_diff_summary_counts_lines():
    summary = diff_summary("a\nb\nc\n", "a\nB\nc\nd\n")
    assert summary.startswith("+2 -1 lines")
    assert "first change: 'b'" in summary
