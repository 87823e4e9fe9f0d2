"""Request models (Pydantic *Params classes) for docsplit tools."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from .enums import CollisionPolicy, RunMode, ToolName, WorkflowStage

# ============ CORE REQUEST MODELS ============


class MCPRequest(BaseModel):
    """MCP tool execution request."""

    tool: ToolName = Field(..., description="The docsplit tool to execute")
    params: dict[str, Any] = Field(default_factory=dict, description="Tool parameters")


# ============ RUN OPTIONS ============


class WorkflowTemplate(BaseModel):
    """A named task template used to assemble workflow paths in the index."""

    name: str = Field(..., description="Workflow path name (e.g. 'quick-start')")
    description: str = Field(default="", description="One-line description for the index")
    stages: list[WorkflowStage] = Field(..., min_length=1, description="Stages, in order")
    per_stage_limit: int | None = Field(
        default=None,
        ge=1,
        description="Maximum files taken per stage (None = all files of the stage)",
    )


class RestructureOptions(BaseModel):
    """Per-run configuration object."""

    split_threshold: float = Field(
        default=7.0, ge=0.0, le=10.0, description="SplitScore above which a section is split"
    )
    file_token_ceiling: int = Field(
        default=2500, ge=1, description="Token estimate above which a section is always split"
    )
    mode: RunMode = Field(default=RunMode.ANALYZE_ONLY, description="analyze-only or materialize")
    on_collision: CollisionPolicy = Field(
        default=CollisionPolicy.DIFF_REPORT,
        description="overwrite, diff-report or fail when a target path exists",
    )
    weights: dict[str, float] | None = Field(
        default=None, description="Criterion weight overrides keyed by criterion name"
    )
    index_filename: str = Field(default="INDEX.md", description="Filename of the index artifact")
    workflow_templates: list[WorkflowTemplate] | None = Field(
        default=None, description="Override the canonical workflow path templates"
    )

    @model_validator(mode="after")
    def _check_weights(self) -> "RestructureOptions":
        if self.weights:
            from ..engine.scoring.constants import SCORING_WEIGHTS

            unknown = sorted(set(self.weights) - set(SCORING_WEIGHTS))
            if unknown:
                raise ValueError(f"Unknown scoring criteria: {', '.join(unknown)}")
            if any(w < 0 for w in self.weights.values()):
                raise ValueError("Scoring weights must be non-negative")
        return self


# ============ DOCUMENT INPUT ============


class FileEntryParam(BaseModel):
    """One item of a repository file inventory."""

    path: str = Field(..., min_length=1, description="Repository-relative path")
    size: int = Field(default=0, ge=0, description="File size in bytes")
    content: str | None = Field(default=None, description="Optional file content")


class DocumentParams(BaseModel):
    """Parameters shared by every tool: the document to restructure."""

    text: str | None = Field(default=None, description="Markdown document body")
    files: list[FileEntryParam] | None = Field(
        default=None, description="Repository file inventory (repository mode)"
    )
    title: str | None = Field(default=None, description="Optional document title")

    @model_validator(mode="after")
    def _exactly_one_input(self) -> "DocumentParams":
        if (self.text is None) == (self.files is None):
            raise ValueError("Invalid parameter: provide exactly one of 'text' or 'files'")
        return self


class SectionsParams(DocumentParams):
    """Parameters for docsplit_sections tool."""


class AnalyzeParams(DocumentParams):
    """Parameters for docsplit_analyze tool."""

    options: RestructureOptions = Field(default_factory=RestructureOptions)


class MaterializeParams(DocumentParams):
    """Parameters for docsplit_materialize tool."""

    output_dir: str = Field(
        ..., min_length=1, description="Target directory, relative to the service output root"
    )
    options: RestructureOptions = Field(
        default_factory=lambda: RestructureOptions(mode=RunMode.MATERIALIZE)
    )
