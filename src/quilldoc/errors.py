"""
Structured error types for quilldoc builds.

Every problem a build can hit is expressed as a ``QuilldocError`` subclass
carrying a category and an ``ErrorContext`` (document, line, module,
reference).  The CLI prints them, and the orchestrator decides which ones are
fatal.

Manifesto:
    A documentation build fails for a small number of reasons, and each one
    should say exactly where to look.  A typed hierarchy keeps the fatal
    errors (broken references, malformed headings, bad configuration) apart
    from the non-fatal ones (modules that fail to import).

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       QuilldocError                          │
        │               (category, context, cause)                     │
        ├──────────────────────────────────────────────────────────────┤
        │  ConfigError          ContentError          ModuleImportError│
        │  (CONFIG)             (CONTENT)             (IMPORT)         │
        │                          │                                   │
        │               BrokenReferenceError                           │
        │               MalformedHeadingError                          │
        └──────────────────────────────────────────────────────────────┘

Tags:
    error-handling, exception-hierarchy, error-context, quilldoc

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used when reporting build problems."""

    CONFIG = "CONFIG"          # Missing file, invalid YAML, unknown keys
    CONTENT = "CONTENT"        # Malformed .rst content
    REFERENCE = "REFERENCE"    # toctree/auto* target that does not exist
    IMPORT = "IMPORT"          # Module exists but could not be imported
    RENDER = "RENDER"          # Output could not be written
    INTERNAL = "INTERNAL"      # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured location metadata attached to an error.

    Attributes:
        docname: Document name (``index``, ``guide/usage``) the error refers to
        file: Source file path
        line: 1-based line number in ``file``
        module: Python module name
        reference: The raw reference text that failed to resolve
        metadata: Additional key-value pairs
    """

    docname: str | None = None
    file: str | None = None
    line: int | None = None
    module: str | None = None
    reference: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["docname", "file", "line", "module", "reference"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result

    def location(self) -> str:
        """Return ``file:line`` (or whatever part of it is known)."""
        where = self.file or self.docname or ""
        if where and self.line is not None:
            return f"{where}:{self.line}"
        return where


class QuilldocError(Exception):
    """
    Base exception for all quilldoc errors.

    Subclasses set ``default_category``.  Context can be supplied up front or
    added fluently with :meth:`with_context`.

    Examples:
        >>> error = QuilldocError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(docname="index", line=3).context.location()
        'index:3'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> QuilldocError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        location = self.context.location()
        return f"{location}: {self.message}" if location else self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(QuilldocError):
    """
    Configuration error.

    Always fatal: the build cannot start until the configuration is fixed.
    """

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """The configuration file does not exist."""

    def __init__(self, path: Path | str, message: str | None = None):
        self.path = Path(path)
        super().__init__(
            message or f"Configuration file not found: {self.path}",
            context=ErrorContext(file=str(self.path)),
        )


class InvalidConfigError(ConfigError):
    """A configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# CONTENT ERRORS
# =============================================================================


class ContentError(QuilldocError):
    """Problem in a user-authored content declaration file."""

    default_category = ErrorCategory.CONTENT


class MalformedHeadingError(ContentError):
    """A section title whose underline (or overline) is shorter than its text."""

    def __init__(
        self,
        file: Path | str,
        line: int,
        title: str,
        adornment: str,
        required: int | None = None,
    ):
        self.title = title
        self.adornment = adornment
        self.required = required if required is not None else len(title)
        super().__init__(
            f"Malformed heading {title!r}: underline is {len(adornment)} characters, "
            f"title needs at least {self.required}",
            context=ErrorContext(file=str(file), line=line),
        )


@dataclass(frozen=True)
class BrokenReference:
    """One reference that does not resolve to a page or module."""

    reference: str
    docname: str
    line: int | None = None
    kind: str = "toctree"

    def describe(self) -> str:
        where = f"{self.docname}:{self.line}" if self.line is not None else self.docname
        return f"{where}: {self.kind} references unknown document or module {self.reference!r}"


class BrokenReferenceError(ContentError):
    """One or more content references could not be resolved.

    Carries every broken reference found, so all of them are reported in one
    run instead of one per rebuild.
    """

    default_category = ErrorCategory.REFERENCE

    def __init__(self, references: list[BrokenReference]):
        self.references = list(references)
        names = ", ".join(repr(ref.reference) for ref in self.references)
        super().__init__(f"{len(self.references)} broken reference(s): {names}")
        if len(self.references) == 1:
            ref = self.references[0]
            self.with_context(docname=ref.docname, line=ref.line, reference=ref.reference)


# =============================================================================
# IMPORT ERRORS (non-fatal)
# =============================================================================


class ModuleImportError(QuilldocError):
    """A module was found on the search paths but could not be imported."""

    default_category = ErrorCategory.IMPORT

    def __init__(self, module: str, cause: BaseException):
        self.module = module
        super().__init__(
            f"Failed to import {module!r}: {type(cause).__name__}: {cause}",
            context=ErrorContext(module=module),
            cause=cause,
        )


class RenderError(QuilldocError):
    """Output could not be written."""

    default_category = ErrorCategory.RENDER


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "QuilldocError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "ContentError",
    "MalformedHeadingError",
    "BrokenReference",
    "BrokenReferenceError",
    "ModuleImportError",
    "RenderError",
]
