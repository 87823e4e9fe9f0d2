"""End-to-end tests for the restructuring pipeline."""

import posixpath
import re

import pytest

from docsplit.engine.core.document import Document, FileEntry
from docsplit.engine.errors import PlanningError, SynthesisCollision
from docsplit.engine.pipeline import RestructureEngine
from docsplit.engine.synthesizer import parse_front_matter
from docsplit.models.enums import CollisionPolicy, ManifestAction, RunMode, SplitTag
from docsplit.models.plan import MaterializeResult, PlanReport
from docsplit.models.requests import RestructureOptions

LINK_PATTERN = re.compile(r"\]\(([^)]+\.md)\)")


def markdown_files(root):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*.md"))


class TestAnalyze:
    """Tests for analyze-only runs."""

    def test_five_stages_become_five_files(self, five_stage_document):
        report = RestructureEngine().report(Document(text=five_stage_document))
        assert len(report.nodes) == 5
        assert report.planned_tokens == report.document_tokens
        tags = {s.title: s.tag for s in report.scores}
        assert tags["Installation"] == SplitTag.SPLIT
        assert tags["Service Handbook"] == SplitTag.ROOT

    def test_single_topic_stays_one_file(self, single_topic_document):
        report = RestructureEngine().report(Document(text=single_topic_document))
        assert [n.path for n in report.nodes] == ["01-overview/caching-layer.md"]
        assert [s.tag for s in report.scores] == [SplitTag.ROOT]

    def test_size_only_inventory_conserves_tokens(self):
        files = (
            FileEntry(path="src/big.py", size=40000),
            FileEntry(path="src/small.py", size=400),
            FileEntry(path="README.md", size=800),
        )
        report = RestructureEngine().report(Document(files=files))
        assert report.planned_tokens == report.document_tokens
        assert not any("-part-" in n.path for n in report.nodes)
        big = next(s for s in report.scores if s.title == "src/big.py")
        assert big.tag == SplitTag.SPLIT
        assert big.subtree_tokens == 10000

    def test_analyze_writes_nothing(self, five_stage_document, tmp_path):
        RestructureEngine().analyze(Document(text=five_stage_document))
        assert list(tmp_path.iterdir()) == []

    def test_higher_threshold_keeps_everything(self, five_stage_document):
        engine = RestructureEngine(RestructureOptions(split_threshold=9.5, file_token_ceiling=20000))
        report = engine.report(Document(text=five_stage_document))
        assert len(report.nodes) == 1


class TestMaterialize:
    """Tests for materialize runs."""

    def test_files_and_index(self, five_stage_document, tmp_path):
        result = RestructureEngine().materialize(Document(text=five_stage_document), tmp_path)
        assert markdown_files(tmp_path) == [
            "01-setup/installation.md",
            "02-concepts/core-concepts.md",
            "03-implementation/building-the-service.md",
            "04-testing/testing-strategy.md",
            "05-deployment/production-rollout.md",
            "INDEX.md",
        ]
        assert result.index_path == "INDEX.md"
        assert all(e.action == ManifestAction.CREATED for e in result.manifest.entries)
        assert (tmp_path / "INDEX.md").read_text().startswith("# Service Handbook Index")

    def test_no_dangling_links(self, five_stage_document, tmp_path):
        RestructureEngine().materialize(Document(text=five_stage_document), tmp_path)
        for relative in markdown_files(tmp_path):
            content = (tmp_path / relative).read_text()
            for link in LINK_PATTERN.findall(content):
                target = posixpath.normpath(posixpath.join(posixpath.dirname(relative), link))
                assert (tmp_path / target).is_file(), f"{relative} links to missing {link}"
            front_matter = parse_front_matter(content)
            for path in front_matter.get("Prerequisites", []) + front_matter.get("Related Files", []):
                assert (tmp_path / path).is_file()

    def test_rerun_is_idempotent(self, five_stage_document, tmp_path):
        engine = RestructureEngine()
        document = Document(text=five_stage_document)
        engine.materialize(document, tmp_path)
        before = {p: (tmp_path / p).read_text() for p in markdown_files(tmp_path)}

        result = engine.materialize(document, tmp_path)
        assert result.manifest.differences == []
        assert all(e.action == ManifestAction.UNCHANGED for e in result.manifest.entries)
        assert {p: (tmp_path / p).read_text() for p in markdown_files(tmp_path)} == before

    def test_edited_file_is_reported_not_overwritten(self, five_stage_document, tmp_path):
        engine = RestructureEngine()
        document = Document(text=five_stage_document)
        engine.materialize(document, tmp_path)
        edited = tmp_path / "01-setup" / "installation.md"
        edited.write_text("local edits\n")

        result = engine.materialize(document, tmp_path)
        assert [e.path for e in result.manifest.differences] == ["01-setup/installation.md"]
        assert edited.read_text() == "local edits\n"

    def test_fail_policy_refuses_edited_target(self, five_stage_document, tmp_path):
        document = Document(text=five_stage_document)
        RestructureEngine().materialize(document, tmp_path)
        (tmp_path / "INDEX.md").write_text("custom index\n")

        engine = RestructureEngine(RestructureOptions(on_collision=CollisionPolicy.FAIL))
        with pytest.raises(SynthesisCollision) as exc_info:
            engine.materialize(document, tmp_path)
        assert exc_info.value.paths == ["INDEX.md"]
        assert (tmp_path / "INDEX.md").read_text() == "custom index\n"

    def test_cycle_writes_nothing(self, cyclic_document, tmp_path):
        target = tmp_path / "out"
        with pytest.raises(PlanningError) as exc_info:
            RestructureEngine().materialize(Document(text=cyclic_document), target)
        assert exc_info.value.rule == "dependency-cycle"
        assert not target.exists()

    def test_oversized_section_is_partitioned(self, oversized_section_document, tmp_path):
        result = RestructureEngine().materialize(Document(text=oversized_section_document), tmp_path)
        parts = [f for f in result.files if "bulk-import-part-" in f.path]
        assert len(parts) >= 3
        assert all(f.token_count <= 2500 for f in parts)
        assert parts[0].path == "01-overview/bulk-import-part-1.md"
        doc_tokens = result.report.document_tokens
        assert abs(result.report.planned_tokens - doc_tokens) <= doc_tokens * 0.02

    def test_repository_inventory(self, tmp_path):
        files = (
            FileEntry(path="README.md", size=120, content="# Tool\n\nA small tool.\n"),
            FileEntry(path="src/tool/cli.py", size=800, content="def main():\n    pass\n"),
            FileEntry(path="tests/test_cli.py", size=300, content="def test_main():\n    pass\n"),
        )
        result = RestructureEngine().materialize(Document(files=files, title="Tool"), tmp_path)
        assert (tmp_path / "INDEX.md").is_file()
        assert result.files
        for file in result.files:
            assert (tmp_path / file.path).is_file()


class TestRunMode:
    """Tests for dispatch on the configured mode."""

    def test_analyze_only_returns_report(self, five_stage_document, tmp_path):
        engine = RestructureEngine(RestructureOptions(mode=RunMode.ANALYZE_ONLY))
        result = engine.run(Document(text=five_stage_document), tmp_path)
        assert isinstance(result, PlanReport)
        assert list(tmp_path.iterdir()) == []

    def test_materialize_writes_files(self, five_stage_document, tmp_path):
        engine = RestructureEngine(RestructureOptions(mode=RunMode.MATERIALIZE))
        result = engine.run(Document(text=five_stage_document), tmp_path)
        assert isinstance(result, MaterializeResult)
        assert (tmp_path / "INDEX.md").is_file()
        assert len(markdown_files(tmp_path)) == len(result.files) + 1

    def test_materialize_requires_output_dir(self, five_stage_document):
        engine = RestructureEngine(RestructureOptions(mode=RunMode.MATERIALIZE))
        with pytest.raises(ValueError, match="output_dir is required"):
            engine.run(Document(text=five_stage_document))
