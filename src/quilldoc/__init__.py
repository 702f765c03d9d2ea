"""
quilldoc - static documentation sites from Python docstrings.

A project declares its table of contents in reStructuredText; quilldoc
imports the referenced modules, parses their Google- or numpydoc-style
docstrings and renders one HTML page per content node.

Examples:
    >>> from pathlib import Path
    >>> from quilldoc import BuildOrchestrator
    >>> report = BuildOrchestrator(Path("docs")).build()
    >>> report.ok
    True
"""

__version__ = "0.1.0"

from quilldoc.config import BuildConfig  # noqa: E402
from quilldoc.errors import (  # noqa: E402
    BrokenReferenceError,
    ConfigError,
    MalformedHeadingError,
    ModuleImportError,
    QuilldocError,
)
from quilldoc.extractor import DocExtractor  # noqa: E402
from quilldoc.models import BuildReport, ContentTree, Member, ModuleDoc, ParsedDocstring  # noqa: E402
from quilldoc.orchestrator import BuildOrchestrator  # noqa: E402
from quilldoc.parser.docstrings import parse_docstring  # noqa: E402
from quilldoc.scanner import SourceScanner  # noqa: E402
from quilldoc.tree import ContentTreeBuilder  # noqa: E402

__all__ = [
    "__version__",
    "BuildConfig",
    "BrokenReferenceError",
    "ConfigError",
    "MalformedHeadingError",
    "ModuleImportError",
    "QuilldocError",
    "DocExtractor",
    "BuildReport",
    "ContentTree",
    "Member",
    "ModuleDoc",
    "ParsedDocstring",
    "BuildOrchestrator",
    "parse_docstring",
    "SourceScanner",
    "ContentTreeBuilder",
]
