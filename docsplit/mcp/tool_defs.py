"""MCP Tool Definitions for docsplit.

This module contains all tool definitions returned by the tools/list method.
Each tool definition includes the schema for its input parameters.

Tools:
    - docsplit_sections: Inspect the extracted section tree
    - docsplit_analyze: Plan a restructuring (no file system access)
    - docsplit_materialize: Write the restructured files and index
"""

from ..models import CollisionPolicy, WorkflowStage

# Shared input fragments: every tool takes the same document input
_DOCUMENT_PROPERTIES: dict = {
    "text": {
        "type": "string",
        "description": "Markdown document to restructure (document mode)",
    },
    "files": {
        "type": "array",
        "description": "Repository file inventory (repository mode). Provide text or files, not both.",
        "items": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Repository-relative path"},
                "size": {"type": "integer", "minimum": 0, "default": 0},
                "content": {"type": "string", "description": "Optional file content"},
            },
            "required": ["path"],
        },
    },
    "title": {"type": "string", "description": "Optional document title"},
}

_OPTIONS_SCHEMA: dict = {
    "type": "object",
    "description": "Run options",
    "properties": {
        "split_threshold": {
            "type": "number",
            "default": 7.0,
            "minimum": 0,
            "maximum": 10,
            "description": "SplitScore above which a section gets its own file",
        },
        "file_token_ceiling": {
            "type": "integer",
            "default": 2500,
            "minimum": 1,
            "description": "Sections larger than this are always split",
        },
        "on_collision": {
            "type": "string",
            "enum": [p.value for p in CollisionPolicy],
            "default": CollisionPolicy.DIFF_REPORT.value,
        },
        "weights": {
            "type": "object",
            "description": "Criterion weight overrides (independence, token_count, workflow_stage, "
            "implementation_variant, reference_frequency, cross_reference_burden)",
            "additionalProperties": {"type": "number", "minimum": 0},
        },
        "index_filename": {"type": "string", "default": "INDEX.md"},
        "workflow_templates": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "stages": {
                        "type": "array",
                        "items": {"type": "string", "enum": [s.value for s in WorkflowStage]},
                        "minItems": 1,
                    },
                    "per_stage_limit": {"type": "integer", "minimum": 1},
                },
                "required": ["name", "stages"],
            },
        },
    },
}


TOOL_DEFINITIONS: list[dict] = [
    {
        "name": "docsplit_sections",
        "description": "Extract the section tree of a document or file inventory with token "
        "estimates, workflow stages, independence and references.",
        "inputSchema": {
            "type": "object",
            "properties": {**_DOCUMENT_PROPERTIES},
        },
    },
    {
        "name": "docsplit_analyze",
        "description": "Plan how to split a document into navigable files. Returns planned paths, "
        "per-section scores and decisions, and resolved cross-references. Writes nothing.",
        "inputSchema": {
            "type": "object",
            "properties": {**_DOCUMENT_PROPERTIES, "options": _OPTIONS_SCHEMA},
        },
    },
    {
        "name": "docsplit_materialize",
        "description": "Split a document into files with YAML front matter and navigation, plus an "
        "index. All files are written together or not at all.",
        "inputSchema": {
            "type": "object",
            "properties": {
                **_DOCUMENT_PROPERTIES,
                "output_dir": {
                    "type": "string",
                    "description": "Target directory, relative to the server output root",
                },
                "options": _OPTIONS_SCHEMA,
            },
            "required": ["output_dir"],
        },
    },
]
