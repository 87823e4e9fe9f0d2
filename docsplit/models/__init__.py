"""Pydantic models for docsplit request/response schemas.

This module re-exports all models for convenience. Import from submodules
directly for cleaner imports:

    from docsplit.models.enums import WorkflowStage
    from docsplit.models.plan import PlanReport
"""

# ============ ENUMS ============
from .enums import (
    CollisionPolicy,
    DecisionReason,
    ManifestAction,
    RelationKind,
    RunMode,
    SplitTag,
    ToolName,
    WorkflowStage,
)

# ============ PLAN / RESULT MODELS ============
from .plan import (
    GeneratedFileInfo,
    Manifest,
    ManifestEntry,
    MaterializeResult,
    PlanNodeInfo,
    PlanReport,
    ResolvedReferenceInfo,
    SectionInfo,
    SectionsResult,
    SplitScoreInfo,
)

# ============ REQUEST MODELS ============
from .requests import (
    AnalyzeParams,
    DocumentParams,
    FileEntryParam,
    MaterializeParams,
    MCPRequest,
    RestructureOptions,
    SectionsParams,
    WorkflowTemplate,
)

# ============ RESPONSE MODELS ============
from .responses import (
    HealthResponse,
    MCPResponse,
    ToolResult,
    UsageInfo,
)

__all__ = [
    # Enums
    "CollisionPolicy",
    "DecisionReason",
    "ManifestAction",
    "RelationKind",
    "RunMode",
    "SplitTag",
    "ToolName",
    "WorkflowStage",
    # Plan / result models
    "GeneratedFileInfo",
    "Manifest",
    "ManifestEntry",
    "MaterializeResult",
    "PlanNodeInfo",
    "PlanReport",
    "ResolvedReferenceInfo",
    "SectionInfo",
    "SectionsResult",
    "SplitScoreInfo",
    # Requests
    "AnalyzeParams",
    "DocumentParams",
    "FileEntryParam",
    "MaterializeParams",
    "MCPRequest",
    "RestructureOptions",
    "SectionsParams",
    "WorkflowTemplate",
    # Responses
    "HealthResponse",
    "MCPResponse",
    "ToolResult",
    "UsageInfo",
]
