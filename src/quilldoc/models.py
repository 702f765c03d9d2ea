"""Data models shared by the scan, extract, tree and render stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


# =============================================================================
# Structured comments
# =============================================================================


@dataclass(frozen=True)
class ParamDoc:
    """One documented parameter (or attribute) from a docstring section."""

    name: str
    type_name: str | None = None
    description: str = ""
    is_optional: bool | None = None
    default: str | None = None


@dataclass(frozen=True)
class ReturnDoc:
    """The documented return (or yield) value."""

    type_name: str | None = None
    description: str = ""
    is_generator: bool = False


@dataclass(frozen=True)
class RaisesDoc:
    """One documented exception."""

    type_name: str | None = None
    description: str = ""


@dataclass(frozen=True)
class ParsedDocstring:
    """A docstring split into its recognised sections.

    ``dialect`` is ``"google"``, ``"numpy"`` or ``None``.  ``None`` means the
    text was treated as an opaque summary and every structured section is
    empty.
    """

    summary: str = ""
    description: str = ""
    dialect: str | None = None
    params: tuple[ParamDoc, ...] = ()
    returns: ReturnDoc | None = None
    raises: tuple[RaisesDoc, ...] = ()
    attributes: tuple[ParamDoc, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.summary or self.description or self.params or self.returns)

    def param(self, name: str) -> ParamDoc | None:
        for param in self.params:
            if param.name == name:
                return param
        return None


EMPTY_DOCSTRING = ParsedDocstring()


# =============================================================================
# Modules and members
# =============================================================================


@dataclass(frozen=True)
class Parameter:
    """A parameter from a callable's signature."""

    name: str
    annotation: str | None = None
    default: str | None = None
    kind: str = "POSITIONAL_OR_KEYWORD"

    def render(self) -> str:
        """Render as it would appear in a signature (``x: int = 0``)."""
        prefix = {"VAR_POSITIONAL": "*", "VAR_KEYWORD": "**"}.get(self.kind, "")
        text = f"{prefix}{self.name}"
        if self.annotation:
            text += f": {self.annotation}"
        if self.default is not None:
            text += f" = {self.default}" if self.annotation else f"={self.default}"
        return text


@dataclass(frozen=True)
class Member:
    """A function, class, method or property found in a module.

    Attributes:
        name: Short name (``resolve``)
        qualname: Dotted name inside the module (``Resolver.resolve``)
        module: Module name the member is defined in
        kind: ``function``, ``class``, ``method``, ``classmethod``,
            ``staticmethod`` or ``property``
        parameters: Signature parameters (``self``/``cls`` removed)
        return_annotation: Rendered return annotation, if any
        docstring: Parsed docstring; empty when undocumented
        documented: Whether the member had a docstring at all
        line_number: Source line, when available
        members: Nested members (methods/properties of a class)
        bases: Base class names (classes only)
    """

    name: str
    qualname: str
    module: str
    kind: str
    parameters: tuple[Parameter, ...] = ()
    return_annotation: str | None = None
    docstring: ParsedDocstring = EMPTY_DOCSTRING
    documented: bool = False
    line_number: int | None = None
    members: tuple[Member, ...] = ()
    bases: tuple[str, ...] = ()
    has_signature: bool = True

    @property
    def fullname(self) -> str:
        return f"{self.module}.{self.qualname}"

    @property
    def anchor(self) -> str:
        return self.fullname

    @property
    def signature(self) -> str:
        """Signature text such as ``(a: int, b: str = 'x') -> bool``."""
        if not self.has_signature:
            return ""
        text = "(" + ", ".join(param.render() for param in self.parameters) + ")"
        if self.return_annotation:
            text += f" -> {self.return_annotation}"
        return text

    def walk(self):
        """Yield this member and every nested member, depth first."""
        yield self
        for member in self.members:
            yield from member.walk()


@dataclass(frozen=True)
class ModuleDoc:
    """A loaded module and its extracted members, in declaration order."""

    name: str
    file: Path | None
    docstring: ParsedDocstring = EMPTY_DOCSTRING
    members: tuple[Member, ...] = ()

    @property
    def anchor(self) -> str:
        return f"module-{self.name}"

    def walk(self):
        """Yield every member (including nested ones), depth first."""
        for member in self.members:
            yield from member.walk()

    def find(self, qualname: str) -> Member | None:
        for member in self.walk():
            if member.qualname == qualname:
                return member
        return None


# =============================================================================
# Scanning outcomes
# =============================================================================


@dataclass(frozen=True)
class ModuleLocation:
    """Where a module name resolved to, without importing it."""

    name: str
    origin: Path | None
    search_path: Path | None
    is_package: bool = False


@dataclass(frozen=True)
class ImportFailure:
    """Non-fatal record of a module that exists but failed to load."""

    module: str
    error_type: str
    message: str
    location: ModuleLocation | None = None

    def describe(self) -> str:
        return f"{self.module}: {self.error_type}: {self.message}"


# =============================================================================
# Content tree
# =============================================================================


@dataclass(frozen=True)
class ContentNode:
    """One toctree entry: a static page or a generated module page."""

    reference: str
    kind: str  # "page" | "module"
    title: str
    uri: str
    line: int | None = None

    @property
    def is_module(self) -> bool:
        return self.kind == "module"


@dataclass(frozen=True)
class TocSection:
    """A captioned group of content nodes (the one level of nesting)."""

    caption: str | None
    nodes: tuple[ContentNode, ...] = ()


@dataclass(frozen=True)
class ContentTree:
    """The root document plus its ordered toctree sections."""

    root: ContentNode
    sections: tuple[TocSection, ...] = ()

    @property
    def nodes(self) -> list[ContentNode]:
        """Every node in render order: root first, then toctree order."""
        ordered = [self.root]
        for section in self.sections:
            ordered.extend(section.nodes)
        return ordered


# =============================================================================
# Build outcome
# =============================================================================


@dataclass
class BuildReport:
    """What a build produced and the non-fatal problems it met."""

    output_dir: Path | None = None
    pages_written: list[str] = field(default_factory=list)
    import_failures: list[ImportFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    modules_documented: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.import_failures and not self.warnings
