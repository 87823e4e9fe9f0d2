"""Error taxonomy for the restructuring pipeline.

``AnalysisError``, ``PlanningError`` and ``LinkResolutionError`` are fatal and
abort the run before anything is written. ``SynthesisCollision`` is the only
recoverable condition; it is raised only when the collision policy forbids
touching existing files, otherwise collisions are reported in the manifest.
"""

from typing import Any


class DocsplitError(Exception):
    """Base class for engine errors.

    Attributes:
        rule: Short name of the violated invariant (e.g. ``dependency-cycle``)
        section_id: Offending section, when the error concerns a section
        node_id: Offending PlanNode, when the error concerns a planned file
    """

    kind = "DocsplitError"

    def __init__(
        self,
        message: str,
        *,
        rule: str,
        section_id: str | None = None,
        node_id: str | None = None,
    ):
        self.message = message
        self.rule = rule
        self.section_id = section_id
        self.node_id = node_id
        super().__init__(self._format())

    def _format(self) -> str:
        where = []
        if self.section_id:
            where.append(f"section '{self.section_id}'")
        if self.node_id:
            where.append(f"node '{self.node_id}'")
        location = f" at {', '.join(where)}" if where else ""
        return f"{self.kind} [{self.rule}]{location}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "rule": self.rule,
            "section_id": self.section_id,
            "node_id": self.node_id,
            "message": self.message,
        }


class AnalysisError(DocsplitError):
    """Input cannot be decomposed into sections (empty or malformed)."""

    kind = "AnalysisError"


class PlanningError(DocsplitError):
    """Plan is inconsistent: path collision, dependency cycle or lost coverage."""

    kind = "PlanningError"


class LinkResolutionError(DocsplitError):
    """A symbolic reference has no surviving target."""

    kind = "LinkResolutionError"


class SynthesisCollision(DocsplitError):
    """A target path already exists and the policy forbids touching it."""

    kind = "SynthesisCollision"

    def __init__(self, message: str, *, paths: list[str], node_id: str | None = None):
        self.paths = paths
        super().__init__(message, rule="target-exists", node_id=node_id)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["paths"] = list(self.paths)
        return data
