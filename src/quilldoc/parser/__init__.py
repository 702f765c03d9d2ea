"""
Parser module for quilldoc.

Provides the docstring dialect parser and the reStructuredText subset reader
used for content declaration files.
"""

from quilldoc.parser.docstrings import (
    DEFAULT_DIALECTS,
    DIALECT_GOOGLE,
    DIALECT_NUMPY,
    detect_dialect,
    opaque_docstring,
    parse_docstring,
)
from quilldoc.parser.rst import (
    Directive,
    Document,
    Heading,
    column_width,
    parse_document,
    parse_fragment,
    parse_toc_entries,
    read_document,
)

__all__ = [
    "DEFAULT_DIALECTS",
    "DIALECT_GOOGLE",
    "DIALECT_NUMPY",
    "detect_dialect",
    "opaque_docstring",
    "parse_docstring",
    "Directive",
    "Document",
    "Heading",
    "column_width",
    "parse_document",
    "parse_fragment",
    "parse_toc_entries",
    "read_document",
]
