"""Plan report and materialize result models."""

from pydantic import BaseModel, Field

from .enums import DecisionReason, ManifestAction, RelationKind, SplitTag, WorkflowStage

# ============ SECTION MODELS ============


class SectionInfo(BaseModel):
    """A section of the extracted tree (docsplit_sections)."""

    id: str = Field(..., description="Section identifier")
    title: str = Field(..., description="Section heading text")
    level: int = Field(..., ge=0, description="Heading depth (0 = synthetic root)")
    parent_id: str | None = Field(default=None, description="Parent section id")
    token_count: int = Field(..., ge=0, description="Own token estimate")
    size_tokens: int | None = Field(
        default=None, ge=0, description="Size-based estimate for files listed without content"
    )
    subtree_tokens: int = Field(..., ge=0, description="Token estimate including descendants")
    stage: WorkflowStage = Field(..., description="Declared or inferred workflow stage")
    independence: float = Field(..., ge=0.0, le=10.0, description="Independence score (0-10)")
    dependencies: list[str] = Field(default_factory=list, description="Declared prerequisite ids")
    references: list[str] = Field(default_factory=list, description="Related section ids")
    variant: str | None = Field(default=None, description="Implementation variant")


class SectionsResult(BaseModel):
    """Result of docsplit_sections tool."""

    sections: list[SectionInfo] = Field(default_factory=list)
    total_tokens: int = Field(default=0, ge=0, description="Document token estimate")
    repository_mode: bool = Field(default=False, description="Whether input was an inventory")


# ============ SCORE / DECISION MODELS ============


class SplitScoreInfo(BaseModel):
    """Scoring and decision outcome for one section."""

    section_id: str = Field(..., description="Section identifier")
    title: str = Field(..., description="Section title")
    tag: SplitTag = Field(..., description="SPLIT, KEEP or ROOT")
    reason: DecisionReason = Field(..., description="Why the tag was chosen")
    score: float | None = Field(default=None, description="Final SplitScore (None if unscored)")
    raw_score: float | None = Field(default=None, description="Weighted average before tie-break")
    criteria: dict[str, float] = Field(default_factory=dict, description="Per-criterion values")
    subtree_tokens: int = Field(
        default=0, ge=0, description="Subtree tokens checked against the ceiling"
    )


# ============ PLAN MODELS ============


class PlanNodeInfo(BaseModel):
    """One planned output file."""

    id: str = Field(..., description="PlanNode identifier")
    path: str = Field(..., description="Planned path relative to the output directory")
    title: str = Field(..., description="File title")
    stage: WorkflowStage = Field(..., description="Workflow stage of the primary section")
    section_ids: list[str] = Field(..., description="Sections carried by this file")
    token_count: int = Field(..., ge=0, description="Carried token estimate")
    parent_id: str | None = Field(default=None, description="Parent PlanNode id")
    position: int = Field(..., ge=0, description="Order among siblings")
    part: int | None = Field(default=None, description="Part number for partitioned sections")
    part_count: int | None = Field(default=None, description="Number of parts")


class ResolvedReferenceInfo(BaseModel):
    """A concrete PlanNode-to-PlanNode edge."""

    source: str = Field(..., description="Source path")
    target: str = Field(..., description="Target path")
    kind: RelationKind = Field(..., description="Relation kind")


class PlanReport(BaseModel):
    """Result of an analyze-only run."""

    nodes: list[PlanNodeInfo] = Field(default_factory=list)
    scores: list[SplitScoreInfo] = Field(default_factory=list)
    references: list[ResolvedReferenceInfo] = Field(default_factory=list)
    document_tokens: int = Field(default=0, ge=0, description="Source token estimate")
    planned_tokens: int = Field(default=0, ge=0, description="Sum of planned node estimates")
    split_threshold: float = Field(..., description="Threshold used")
    file_token_ceiling: int = Field(..., description="Ceiling used")


# ============ MATERIALIZE MODELS ============


class ManifestEntry(BaseModel):
    """Outcome for one path written (or not) by a materialize run."""

    path: str = Field(..., description="Path relative to the output directory")
    action: ManifestAction = Field(..., description="What happened to the path")
    diff_summary: str | None = Field(default=None, description="Summary for would_change")


class Manifest(BaseModel):
    """Every path created, overwritten, unchanged or withheld by a run."""

    entries: list[ManifestEntry] = Field(default_factory=list)

    @property
    def differences(self) -> list[ManifestEntry]:
        return [e for e in self.entries if e.action == ManifestAction.WOULD_CHANGE]

    @property
    def written(self) -> list[ManifestEntry]:
        return [
            e
            for e in self.entries
            if e.action in (ManifestAction.CREATED, ManifestAction.OVERWRITTEN)
        ]


class GeneratedFileInfo(BaseModel):
    """Summary of a rendered file."""

    path: str
    title: str
    stage: WorkflowStage
    token_count: int = Field(..., ge=0, description="Carried body token estimate")


class MaterializeResult(BaseModel):
    """Result of a materialize run."""

    output_dir: str = Field(..., description="Directory the run targeted")
    files: list[GeneratedFileInfo] = Field(default_factory=list)
    index_path: str = Field(..., description="Index artifact path")
    manifest: Manifest = Field(default_factory=Manifest)
    report: PlanReport
