"""Scoring and planning constants for the restructuring engine.

Everything the decision engine and planner consult lives here as plain
tables so new document domains can be supported by editing data:
- Criterion weights and score bands
- Workflow stage cues (heading keywords, step patterns, directory hints)
- Implementation variant keywords
- Reference detection patterns
- Generated file schema (front matter, navigation, agent use cases)
- Workflow path templates for the index
"""

import re

from ...models.enums import WorkflowStage
from ...models.requests import WorkflowTemplate

# ---------------------------------------------------------------------------
# Split scoring
# ---------------------------------------------------------------------------
INDEPENDENCE = "independence"
TOKEN_COUNT = "token_count"
WORKFLOW_STAGE = "workflow_stage"
IMPLEMENTATION_VARIANT = "implementation_variant"
REFERENCE_FREQUENCY = "reference_frequency"
CROSS_REFERENCE_BURDEN = "cross_reference_burden"

WEIGHT_HIGH = 3.0
WEIGHT_MEDIUM = 2.0

SCORING_WEIGHTS: dict[str, float] = {
    INDEPENDENCE: WEIGHT_HIGH,
    TOKEN_COUNT: WEIGHT_MEDIUM,
    WORKFLOW_STAGE: WEIGHT_HIGH,
    IMPLEMENTATION_VARIANT: WEIGHT_HIGH,
    REFERENCE_FREQUENCY: WEIGHT_MEDIUM,
    CROSS_REFERENCE_BURDEN: WEIGHT_HIGH,  # Inverted: high burden lowers the score
}

CRITERION_MIN = 1.0
CRITERION_MAX = 10.0

# Token criterion saturates at this many tokens
TOKEN_SCORE_SATURATION = 2000

# Raw scores within this distance of the threshold are kept unified
TIE_BREAK_BAND = 0.5

# Stage criterion values
STAGE_SAME_AS_PARENT = 1.0
STAGE_SHARED_WITH_SIBLING = 7.0
STAGE_DISTINCT = 10.0

# Variant criterion values
VARIANT_NONE = 5.0
VARIANT_SHARED = 2.0
VARIANT_DISTINCT = 10.0

# Reference frequency: 1 + 2 per citing section, capped at 10
REFERENCE_FREQUENCY_STEP = 2.0

# Cross-reference burden: 1 + 1.5 per boundary-crossing link, capped at 10
BURDEN_STEP = 1.5

DEFAULT_SPLIT_THRESHOLD = 7.0
DEFAULT_FILE_TOKEN_CEILING = 2500

# ---------------------------------------------------------------------------
# Independence inference
# ---------------------------------------------------------------------------
INDEPENDENCE_BASE = 10.0
DEPENDENCY_PENALTY = 2.0
BACK_REFERENCE_PENALTY = 1.0
SIBLING_MENTION_PENALTY = 1.5

BACK_REFERENCE_PATTERNS = (
    r"\bas (?:described|mentioned|shown|discussed|explained) (?:above|earlier|previously)\b",
    r"\bsee (?:above|below|the previous section)\b",
    r"\bin the (?:previous|preceding|next|following) section\b",
    r"\bcontinuing from\b",
)

# ---------------------------------------------------------------------------
# Markdown structure
# ---------------------------------------------------------------------------
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")
DIRECTIVE_PATTERN = re.compile(
    r"<!--\s*(stage|requires|related|independence|variant)\s*:\s*(.*?)\s*-->",
    re.IGNORECASE,
)
ANCHOR_LINK_PATTERN = re.compile(r"\[[^\]]*\]\(#([^)\s]+)\)")
SEE_REFERENCE_PATTERN = re.compile(
    r"\b(?:see|refer to|described in|covered in|explained in)\s+[\"'`*_]*([A-Za-z0-9][^\"'`*_.,;:()\n]{1,80})",
    re.IGNORECASE,
)
STEP_PATTERNS = (
    r"^\s*\d+[.)]\s+\S",
    r"^\s*(?:step|phase)\s+\d+\b",
)
# Numbered lines needed before a span counts as step-like
STEP_LINE_MIN = 3

# ---------------------------------------------------------------------------
# Workflow stages
# ---------------------------------------------------------------------------
STAGE_ORDER: tuple[WorkflowStage, ...] = tuple(WorkflowStage)

STAGE_DIRECTORY_NAMES: dict[WorkflowStage, str] = {
    WorkflowStage.OVERVIEW: "overview",
    WorkflowStage.SETUP: "setup",
    WorkflowStage.CONCEPT: "concepts",
    WorkflowStage.IMPLEMENTATION: "implementation",
    WorkflowStage.TESTING: "testing",
    WorkflowStage.DEPLOYMENT: "deployment",
    WorkflowStage.TROUBLESHOOTING: "troubleshooting",
    WorkflowStage.REFERENCE: "reference",
}

# Heading keywords (stemmed prefixes) that signal a stage; first match wins
STAGE_KEYWORDS: dict[WorkflowStage, tuple[str, ...]] = {
    WorkflowStage.OVERVIEW: (
        "overview", "introduction", "intro", "summary", "about", "purpose", "scope",
        "background", "motivation",
    ),
    WorkflowStage.SETUP: (
        "setup", "set up", "install", "installation", "getting started", "quick start",
        "quickstart", "prerequisite", "requirement", "configur", "environment", "bootstrap",
    ),
    WorkflowStage.CONCEPT: (
        "concept", "architecture", "design", "principle", "model", "theory", "fundamental",
        "how it works", "glossary", "terminology",
    ),
    WorkflowStage.IMPLEMENTATION: (
        "implement", "usage", "using", "build", "integrat", "example", "tutorial", "guide",
        "pattern", "recipe", "workflow", "develop",
    ),
    WorkflowStage.TESTING: ("test", "verif", "validat", "quality", "benchmark"),
    WorkflowStage.DEPLOYMENT: (
        "deploy", "release", "production", "operat", "monitor", "scaling", "ci/cd", "rollout",
    ),
    WorkflowStage.TROUBLESHOOTING: (
        "troubleshoot", "debug", "error", "issue", "faq", "problem", "pitfall", "optimi",
        "performance", "tuning",
    ),
    WorkflowStage.REFERENCE: (
        "reference", "api", "appendix", "cheat sheet", "cheatsheet", "citation", "resource",
        "changelog", "specification", "options", "parameters",
    ),
}

# Repository mode: path component -> stage
DIRECTORY_STAGE_HINTS: dict[str, WorkflowStage] = {
    "docs": WorkflowStage.REFERENCE,
    "doc": WorkflowStage.REFERENCE,
    "documentation": WorkflowStage.REFERENCE,
    "reference": WorkflowStage.REFERENCE,
    "tests": WorkflowStage.TESTING,
    "test": WorkflowStage.TESTING,
    "spec": WorkflowStage.TESTING,
    "benchmarks": WorkflowStage.TESTING,
    "scripts": WorkflowStage.DEPLOYMENT,
    "deploy": WorkflowStage.DEPLOYMENT,
    "deployment": WorkflowStage.DEPLOYMENT,
    "infra": WorkflowStage.DEPLOYMENT,
    ".github": WorkflowStage.DEPLOYMENT,
    "k8s": WorkflowStage.DEPLOYMENT,
    "config": WorkflowStage.SETUP,
    "configs": WorkflowStage.SETUP,
    "settings": WorkflowStage.SETUP,
    "examples": WorkflowStage.IMPLEMENTATION,
    "src": WorkflowStage.IMPLEMENTATION,
    "lib": WorkflowStage.IMPLEMENTATION,
    "app": WorkflowStage.IMPLEMENTATION,
    "design": WorkflowStage.CONCEPT,
    "architecture": WorkflowStage.CONCEPT,
}

# Repository mode: exact filename -> stage
FILE_STAGE_HINTS: dict[str, WorkflowStage] = {
    "readme.md": WorkflowStage.OVERVIEW,
    "readme.rst": WorkflowStage.OVERVIEW,
    "readme": WorkflowStage.OVERVIEW,
    "setup.py": WorkflowStage.SETUP,
    "setup.cfg": WorkflowStage.SETUP,
    "pyproject.toml": WorkflowStage.SETUP,
    "requirements.txt": WorkflowStage.SETUP,
    "package.json": WorkflowStage.SETUP,
    "makefile": WorkflowStage.SETUP,
    ".env.example": WorkflowStage.SETUP,
    "dockerfile": WorkflowStage.DEPLOYMENT,
    "docker-compose.yml": WorkflowStage.DEPLOYMENT,
    "changelog.md": WorkflowStage.REFERENCE,
    "license": WorkflowStage.REFERENCE,
}

# Repository mode: rough bytes per token when content is not supplied
BYTES_PER_TOKEN = 4

# ---------------------------------------------------------------------------
# Implementation variants
# ---------------------------------------------------------------------------
VARIANT_KEYWORDS = frozenset(
    {
        "python", "javascript", "typescript", "java", "golang", "rust", "ruby",
        "php", "kotlin", "swift", "csharp", "c#", "node", "nodejs", "react", "vue",
        "angular", "svelte", "aws", "gcp", "azure", "s3", "linux", "macos", "windows",
        "docker", "kubernetes", "postgres", "mysql", "sqlite",
    }
)

# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------
# Titles that make poor filenames on their own; replaced by content keywords
GENERIC_TITLE_TERMS = frozenset(
    {
        "section", "untitled", "misc", "miscellaneous", "other", "others", "stuff",
        "notes", "note", "part", "chapter", "page", "item", "text", "content",
        "contents", "file", "doc", "document", "tbd", "todo", "new", "temp",
    }
)

SLUG_MAX_LENGTH = 60
FILENAME_KEYWORD_COUNT = 3

STOP_WORDS = frozenset(
    {
        "a", "an", "the", "is", "are", "was", "were", "be", "been", "being", "have",
        "has", "had", "do", "does", "did", "will", "would", "could", "should", "may",
        "might", "can", "to", "of", "in", "for", "on", "with", "at", "by", "from", "as",
        "into", "about", "over", "under", "then", "than", "here", "there", "when",
        "where", "why", "how", "all", "each", "more", "most", "other", "some", "such",
        "no", "not", "only", "so", "too", "very", "just", "and", "or", "but", "if",
        "what", "which", "who", "this", "that", "these", "those", "it", "its", "you",
        "your", "we", "our", "they", "their", "use", "using", "also", "one", "two",
    }
)

# ---------------------------------------------------------------------------
# Generated file schema
# ---------------------------------------------------------------------------
FRONT_MATTER_PURPOSE = "Purpose"
FRONT_MATTER_PREREQUISITES = "Prerequisites"
FRONT_MATTER_RELATED = "Related Files"
FRONT_MATTER_USE_CASE = "Agent Use Case"

FRONT_MATTER_FIELDS = (
    FRONT_MATTER_PURPOSE,
    FRONT_MATTER_PREREQUISITES,
    FRONT_MATTER_RELATED,
    FRONT_MATTER_USE_CASE,
)

NAVIGATION_FIELDS = ("Previous", "Next", "Up")
NAVIGATION_ABSENT = "none"

PURPOSE_MAX_WORDS = 30

AGENT_USE_CASES: dict[WorkflowStage, str] = {
    WorkflowStage.OVERVIEW: "Load first to orient yourself before working on {title}.",
    WorkflowStage.SETUP: "Load when preparing the environment or configuration for {title}.",
    WorkflowStage.CONCEPT: "Load when you need the underlying model behind {title}.",
    WorkflowStage.IMPLEMENTATION: "Load when writing or changing code that covers {title}.",
    WorkflowStage.TESTING: "Load when verifying or adding tests for {title}.",
    WorkflowStage.DEPLOYMENT: "Load when shipping or operating {title}.",
    WorkflowStage.TROUBLESHOOTING: "Load when debugging or optimizing {title}.",
    WorkflowStage.REFERENCE: "Load when you need exact details about {title}.",
}

# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------
INDEX_TITLE = "Index"
SUMMARY_MAX_WORDS = 20

WORKFLOW_TEMPLATES: tuple[WorkflowTemplate, ...] = (
    WorkflowTemplate(
        name="quick-start",
        description="Shortest path from zero to a working result.",
        stages=[WorkflowStage.OVERVIEW, WorkflowStage.SETUP, WorkflowStage.IMPLEMENTATION],
        per_stage_limit=1,
    ),
    WorkflowTemplate(
        name="full-build",
        description="Everything needed to build and ship, in order.",
        stages=[
            WorkflowStage.OVERVIEW,
            WorkflowStage.SETUP,
            WorkflowStage.CONCEPT,
            WorkflowStage.IMPLEMENTATION,
            WorkflowStage.TESTING,
            WorkflowStage.DEPLOYMENT,
        ],
    ),
    WorkflowTemplate(
        name="debug-optimize",
        description="Diagnose problems and tune behaviour.",
        stages=[
            WorkflowStage.TROUBLESHOOTING,
            WorkflowStage.TESTING,
            WorkflowStage.REFERENCE,
        ],
    ),
)

# Repository mode: file extension -> implementation variant (also the fence language)
EXTENSION_VARIANTS: dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".go": "golang",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".cs": "csharp",
}

TEST_FILE_PATTERNS = (
    r"^test_.+\.py$",
    r".+_test\.(?:py|go)$",
    r".+\.(?:spec|test)\.(?:js|jsx|ts|tsx)$",
)
