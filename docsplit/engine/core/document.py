"""Document data structures for the restructuring engine.

This module contains the input document and the section tree built by the
extractor. The tree is an arena: sections are stored in a flat list and
refer to each other by integer index, so folding and re-parenting during
planning never copies section content.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from ...models.enums import WorkflowStage


@dataclass(frozen=True)
class FileEntry:
    """One item of a repository file inventory.

    Attributes:
        path: Repository-relative POSIX path
        size: Size in bytes
        content: File content, when supplied
    """

    path: str
    size: int = 0
    content: str | None = None


@dataclass(frozen=True)
class Document:
    """Raw pipeline input. Immutable once ingested.

    Exactly one of ``text`` (document mode) or ``files`` (repository mode)
    is set.
    """

    text: str | None = None
    files: tuple[FileEntry, ...] | None = None
    title: str | None = None

    @property
    def repository_mode(self) -> bool:
        return self.files is not None


@dataclass
class Section:
    """A contiguous span of the document.

    Sections are created by the extractor and are read-only afterwards.

    Attributes:
        index: Position in the arena (0 is the root)
        id: Stable identifier derived from document order
        title: Heading text (or path for repository entries)
        level: Heading depth, 0 for a synthetic root
        content: Own content, excluding children
        token_count: Token estimate of ``content`` (what the carried body costs)
        size_tokens: Size-based estimate for inventory files listed without
            content; scoring and the ceiling read it instead of ``token_count``
        stage: Declared or inferred workflow stage
        stage_declared: Whether ``stage`` came from a directive
        independence: 0-10 rating of comprehensibility without siblings
        dependencies: Section ids this section declares as prerequisites
        references: Section ids this section links to as related material
        unresolved: Declared ``(kind, title)`` targets that matched no section
        variant: Implementation variant (language, platform, cloud)
        anchor: Markdown anchor slug of the heading
        start_line: First line (1-indexed) of the section in the source
        parent: Index of the parent section, None for the root
        children: Indices of child sections in document order
    """

    index: int
    id: str
    title: str
    level: int
    content: str
    token_count: int
    stage: WorkflowStage
    size_tokens: int | None = None
    stage_declared: bool = False
    independence: float = 10.0
    dependencies: tuple[str, ...] = ()
    references: tuple[str, ...] = ()
    unresolved: tuple[tuple[str, str], ...] = ()
    variant: str | None = None
    anchor: str = ""
    start_line: int = 1
    parent: int | None = None
    children: list[int] = field(default_factory=list)


@dataclass
class SectionTree:
    """Arena of sections addressed by integer index.

    Attributes:
        sections: All sections, root first, in document order
        total_tokens: Token estimate of the whole document
        repository_mode: Whether the tree was built from a file inventory
    """

    sections: list[Section] = field(default_factory=list)
    total_tokens: int = 0
    repository_mode: bool = False
    _by_id: dict[str, int] = field(default_factory=dict, repr=False)
    _subtree_cache: dict[int, int] = field(default_factory=dict, repr=False)
    _weight_cache: dict[int, int] = field(default_factory=dict, repr=False)

    @property
    def root(self) -> Section:
        return self.sections[0]

    def __len__(self) -> int:
        return len(self.sections)

    def __getitem__(self, index: int) -> Section:
        return self.sections[index]

    def add(self, section: Section) -> None:
        self.sections.append(section)
        self._by_id[section.id] = section.index

    def by_id(self, section_id: str) -> Section:
        return self.sections[self._by_id[section_id]]

    def has_id(self, section_id: str) -> bool:
        return section_id in self._by_id

    def children(self, index: int) -> list[Section]:
        return [self.sections[i] for i in self.sections[index].children]

    def siblings(self, index: int) -> list[Section]:
        """Other children of this section's parent (empty for the root)."""
        parent = self.sections[index].parent
        if parent is None:
            return []
        return [s for s in self.children(parent) if s.index != index]

    def walk(self, index: int = 0) -> Iterator[Section]:
        """Pre-order traversal starting at ``index``."""
        stack = [index]
        while stack:
            current = stack.pop()
            yield self.sections[current]
            stack.extend(reversed(self.sections[current].children))

    def subtree_ids(self, index: int) -> set[str]:
        return {s.id for s in self.walk(index)}

    def subtree_tokens(self, index: int) -> int:
        """Token estimate of a section including all descendants."""
        if index not in self._subtree_cache:
            self._subtree_cache[index] = sum(s.token_count for s in self.walk(index))
        return self._subtree_cache[index]

    def subtree_weight(self, index: int) -> int:
        """Tokens a subtree stands for when scoring and checking the ceiling.

        Same as ``subtree_tokens`` except that files listed by size only count
        at their size estimate.
        """
        if index not in self._weight_cache:
            self._weight_cache[index] = sum(
                s.token_count if s.size_tokens is None else s.size_tokens
                for s in self.walk(index)
            )
        return self._weight_cache[index]

    def ancestors(self, index: int) -> list[int]:
        """Indices from the parent up to the root."""
        result = []
        parent = self.sections[index].parent
        while parent is not None:
            result.append(parent)
            parent = self.sections[parent].parent
        return result
