"""Restructuring pipeline.

Wires the stages together, leaves first:

    extract -> score -> decide -> plan -> resolve -> render -> index -> write

``analyze`` stops after resolution and never touches the file system.
``materialize`` renders every file, builds the index over the complete set,
and writes everything in one staged step. ``run`` picks one of the two from
the configured mode.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from ..models.enums import CollisionPolicy, RunMode
from ..models.plan import (
    GeneratedFileInfo,
    MaterializeResult,
    PlanNodeInfo,
    PlanReport,
    ResolvedReferenceInfo,
    SectionInfo,
    SectionsResult,
    SplitScoreInfo,
)
from ..models.requests import RestructureOptions
from .core.document import Document, SectionTree
from .core.extractor import extract
from .decision import TaggedTree, decide
from .index import Index, build_index
from .planner import Plan, plan_structure
from .resolver import ResolvedLinks, resolve
from .scoring.split_scorer import SplitScore, score_sections
from .synthesizer import GeneratedFile, OutputFile, render_files, write_outputs

logger = logging.getLogger(__name__)


@dataclass
class Analysis:
    """Everything an analyze run computes."""

    tree: SectionTree
    scores: dict[str, SplitScore]
    tagged: TaggedTree
    plan: Plan
    links: ResolvedLinks


class RestructureEngine:
    """Runs the restructuring pipeline for one set of options."""

    def __init__(self, options: RestructureOptions | None = None):
        self.options = options or RestructureOptions()

    def analyze(self, document: Document) -> Analysis:
        """Extract, score, decide, plan and resolve. No side effects."""
        options = self.options
        tree = extract(document)
        scores = score_sections(tree, options.split_threshold, options.weights)
        tagged = decide(
            tree,
            threshold=options.split_threshold,
            ceiling=options.file_token_ceiling,
            weights=options.weights,
            scores=scores,
        )
        plan = plan_structure(tagged)
        links = resolve(plan)
        return Analysis(tree=tree, scores=scores, tagged=tagged, plan=plan, links=links)

    def render(self, analysis: Analysis, title: str | None = None) -> tuple[list[GeneratedFile], Index]:
        files = render_files(analysis.plan, analysis.links)
        index = build_index(
            files,
            index_filename=self.options.index_filename,
            title=title or analysis.tree.root.title,
            templates=self.options.workflow_templates,
        )
        return files, index

    def run(
        self, document: Document, output_dir: Path | None = None
    ) -> PlanReport | MaterializeResult:
        """Run the pipeline in the configured ``mode``.

        Raises:
            ValueError: If ``mode`` is ``materialize`` and no ``output_dir`` is given
        """
        if RunMode(self.options.mode) == RunMode.ANALYZE_ONLY:
            return self.report(document)
        if output_dir is None:
            raise ValueError("Invalid parameter: output_dir is required in materialize mode")
        return self.materialize(document, output_dir)

    def report(self, document: Document) -> PlanReport:
        """Analyze-only run."""
        return build_report(self.analyze(document), self.options)

    def materialize(self, document: Document, output_dir: Path) -> MaterializeResult:
        """Materialize run: render, index and write under ``output_dir``.

        Raises:
            SynthesisCollision: If ``on_collision`` is ``fail`` and a target differs
        """
        analysis = self.analyze(document)
        files, index = self.render(analysis, title=document.title)
        outputs = [OutputFile(f.path, f.content) for f in files]
        outputs.append(OutputFile(index.path, index.content))
        outcome = write_outputs(outputs, Path(output_dir), CollisionPolicy(self.options.on_collision))
        return MaterializeResult(
            output_dir=str(output_dir),
            files=[
                GeneratedFileInfo(
                    path=f.path, title=f.title, stage=f.stage, token_count=f.token_count
                )
                for f in files
            ],
            index_path=index.path,
            manifest=outcome.manifest,
            report=build_report(analysis, self.options),
        )


def sections_result(tree: SectionTree) -> SectionsResult:
    return SectionsResult(
        sections=[
            SectionInfo(
                id=s.id,
                title=s.title,
                level=s.level,
                parent_id=tree[s.parent].id if s.parent is not None else None,
                token_count=s.token_count,
                size_tokens=s.size_tokens,
                subtree_tokens=tree.subtree_tokens(s.index),
                stage=s.stage,
                independence=s.independence,
                dependencies=list(s.dependencies),
                references=list(s.references),
                variant=s.variant,
            )
            for s in tree.sections
        ],
        total_tokens=tree.total_tokens,
        repository_mode=tree.repository_mode,
    )


def build_report(analysis: Analysis, options: RestructureOptions) -> PlanReport:
    tree = analysis.tree
    scores = []
    for section in tree.sections:
        decision = analysis.tagged.decisions[section.id]
        score = decision.score or analysis.scores.get(section.id)
        scores.append(
            SplitScoreInfo(
                section_id=section.id,
                title=section.title,
                tag=decision.tag,
                reason=decision.reason,
                score=score.value if score else None,
                raw_score=score.raw if score else None,
                criteria=score.criteria_dict() if score else {},
                subtree_tokens=tree.subtree_weight(section.index),
            )
        )

    plan = analysis.plan
    return PlanReport(
        nodes=[
            PlanNodeInfo(
                id=n.id,
                path=n.path,
                title=n.title,
                stage=n.stage,
                section_ids=list(n.section_ids),
                token_count=n.token_count,
                parent_id=n.parent_id,
                position=n.position,
                part=n.part,
                part_count=n.part_count,
            )
            for n in plan.nodes
        ],
        scores=scores,
        references=[
            ResolvedReferenceInfo(source=r.source_path, target=r.target_path, kind=r.kind)
            for r in analysis.links.references
        ],
        document_tokens=plan.document_tokens,
        planned_tokens=plan.planned_tokens,
        split_threshold=options.split_threshold,
        file_token_ceiling=options.file_token_ceiling,
    )
