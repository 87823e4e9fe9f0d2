"""docsplit: restructure large documents and repositories into navigable file sets."""

__version__ = "0.3.0"
