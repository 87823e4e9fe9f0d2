"""Engine core module.

This module contains the input side of the restructuring engine:
- Document and section tree data structures
- Section extraction (markdown documents and repository inventories)
- Token counting
"""

from .document import Document, FileEntry, Section, SectionTree
from .extractor import extract, extract_inventory, extract_markdown
from .tokens import count_tokens, estimate_tokens_from_size, get_encoder

__all__ = [
    # Document structures
    "Document",
    "FileEntry",
    "Section",
    "SectionTree",
    # Extraction
    "extract",
    "extract_markdown",
    "extract_inventory",
    # Token utilities
    "get_encoder",
    "count_tokens",
    "estimate_tokens_from_size",
]
