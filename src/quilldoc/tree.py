"""
Content tree builder - read declarations and validate references.

The builder works in two passes around the source scanner:

1. :meth:`ContentTreeBuilder.read` parses the root document and every page
   its toctrees name.  Headings are validated while parsing.  The result
   lists the module names the scanner must load.
2. :meth:`ContentTreeBuilder.build` checks every toctree entry and auto*
   directive against the scan results.  It then returns the ordered
   :class:`~quilldoc.models.ContentTree`, or raises
   :class:`~quilldoc.errors.BrokenReferenceError` naming every reference
   that does not resolve.

Manifesto:
    The table of contents is declared, never inferred.  What the root
    document lists is what gets rendered, in that order.  A reference to
    something that does not exist is a mistake in the declarations.  It stops
    the build before a single page is written, so a half-linked site never
    ships.

Guardrails:
    - Do NOT stop at the first broken reference
      ✅ Collect all of them and report them together
    - Do NOT treat an import failure as a broken reference
      ✅ The module exists; its page renders with a notice instead

Tags:
    toctree, content-tree, validation, quilldoc
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from quilldoc.config import BuildConfig
from quilldoc.errors import BrokenReference, BrokenReferenceError, ContentError
from quilldoc.logging import get_logger
from quilldoc.models import ContentNode, ContentTree, ModuleDoc, TocSection
from quilldoc.parser.rst import (
    AUTODOC_DIRECTIVES,
    KNOWN_DIRECTIVES,
    Document,
    TocEntry,
    parse_toc_entries,
    read_document,
)
from quilldoc.scanner import ScanResult, SourceScanner

logger = get_logger(__name__)

SOURCE_SUFFIX = ".rst"
ROOT_URI = "index.html"
# Pages the renderer writes itself
RESERVED_URIS = frozenset({ROOT_URI, "genindex.html", "py-modindex.html", "search.html"})


@dataclass(frozen=True)
class TocItem:
    """A toctree entry and the document it names, if any."""

    entry: TocEntry
    docname: str | None


@dataclass(frozen=True)
class Toctree:
    caption: str | None
    hidden: bool
    items: tuple[TocItem, ...]


@dataclass(frozen=True)
class ObjectRef:
    """The target of an ``automodule`` / ``autoclass`` / ``autofunction`` directive."""

    target: str
    directive: str
    docname: str
    line: int


@dataclass
class ContentSet:
    """Everything read from the content declaration files.

    Attributes:
        root: The root document
        documents: Every document read, root first, then toctree order
        toctrees: The root document's toctrees, in order
        object_refs: auto* directive targets from every document
        warnings: Non-fatal problems (orphans, unknown directives, ...)
    """

    root: Document
    documents: dict[str, Document] = field(default_factory=dict)
    toctrees: list[Toctree] = field(default_factory=list)
    object_refs: list[ObjectRef] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class ContentTreeBuilder:
    """Read content declarations and assemble the content tree.

    Example:
        >>> builder = ContentTreeBuilder(config, scanner)
        >>> content = builder.read()
        >>> scan = scanner.scan(builder.module_names(content))
        >>> tree = builder.build(content, scan, modules)
    """

    def __init__(self, config: BuildConfig, scanner: SourceScanner | None = None):
        self.config = config
        self.source_dir = Path(config.source_dir)
        self.scanner = scanner or SourceScanner(config.resolved_search_paths)

    # ── Pass 1: read ─────────────────────────────────────────────

    def read(self) -> ContentSet:
        """Parse the root document and the pages its toctrees reference.

        Raises:
            ContentError: If the root document does not exist
            MalformedHeadingError: If any title's adornment is too short
        """
        root_name = self.config.root_doc
        root_path = self.doc_path(root_name)
        if not root_path.is_file():
            raise ContentError(f"Root document not found: {root_path}").with_context(
                file=str(root_path), docname=root_name
            )

        root = read_document(root_path, root_name)
        content = ContentSet(root=root, documents={root_name: root})

        for directive in root.directives("toctree"):
            items = []
            for entry in parse_toc_entries(directive):
                docname = self._docname_for(entry.target)
                if docname == root_name:
                    content.warnings.append(
                        f"{root_name}:{entry.line}: toctree contains a reference to the root document"
                    )
                    continue
                if docname is not None and docname not in content.documents:
                    content.documents[docname] = read_document(self.doc_path(docname), docname)
                items.append(TocItem(entry=entry, docname=docname))
            content.toctrees.append(
                Toctree(
                    caption=directive.options.get("caption") or None,
                    hidden=directive.flag("hidden"),
                    items=tuple(items),
                )
            )

        for docname, document in content.documents.items():
            self._check_directives(document, content)
            if docname != root_name:
                for directive in document.directives("toctree"):
                    content.warnings.append(
                        f"{docname}:{directive.line}: toctree outside the root document is ignored"
                    )

        content.warnings.extend(self._orphans(content))
        for warning in content.warnings:
            logger.warning("tree.warning", message=warning)
        return content

    def doc_path(self, docname: str) -> Path:
        return self.source_dir / f"{docname}{SOURCE_SUFFIX}"

    def _docname_for(self, target: str) -> str | None:
        name = target.strip()
        if name.endswith(SOURCE_SUFFIX):
            name = name[: -len(SOURCE_SUFFIX)]
        name = name.lstrip("/")
        while name.startswith("./"):
            name = name[2:]
        if not name:
            return None
        source_dir = self.source_dir.resolve()
        path = self.doc_path(name).resolve()
        if not path.is_relative_to(source_dir) or not path.is_file():
            return None
        return path.relative_to(source_dir).with_suffix("").as_posix()

    def _check_directives(self, document: Document, content: ContentSet) -> None:
        current_module: str | None = None
        for directive in document.directives():
            where = f"{document.docname}:{directive.line}"
            if directive.name not in KNOWN_DIRECTIVES:
                content.warnings.append(f"{where}: unknown directive type {directive.name!r}")
                continue
            if directive.name in ("currentmodule", "module"):
                current_module = directive.argument or None
                continue
            if directive.name not in AUTODOC_DIRECTIVES:
                continue

            if not self.config.autodoc_enabled:
                content.warnings.append(
                    f"{where}: {directive.name} requires the 'autodoc' extension"
                )
                continue
            if not directive.argument:
                content.warnings.append(f"{where}: {directive.name} needs a target")
                continue

            target = directive.argument
            if directive.name == "automodule":
                current_module = target
            elif "." not in target and current_module:
                target = f"{current_module}.{target}"
            content.object_refs.append(
                ObjectRef(
                    target=target,
                    directive=directive.name,
                    docname=document.docname,
                    line=directive.line,
                )
            )

    def _orphans(self, content: ContentSet) -> list[str]:
        output_dir = self.config.resolved_output_dir
        warnings = []
        for path in sorted(self.source_dir.rglob(f"*{SOURCE_SUFFIX}")):
            relative = path.relative_to(self.source_dir)
            if any(part.startswith(("_", ".")) for part in relative.parts[:-1]):
                continue
            if path.resolve().is_relative_to(output_dir):
                continue
            docname = relative.with_suffix("").as_posix()
            if docname not in content.documents:
                warnings.append(f"{docname}: document isn't included in any toctree")
        return warnings

    # ── Module names for the scanner ─────────────────────────────

    def module_names(self, content: ContentSet) -> list[str]:
        """Module names to scan, in first-reference order.

        Toctree entries that are not documents come first, followed by the
        modules named (directly or through an object path) by auto*
        directives.
        """
        if not self.config.autodoc_enabled:
            return []

        names: list[str] = []
        for toctree in content.toctrees:
            names.extend(item.entry.target for item in toctree.items if item.docname is None)
        for ref in content.object_refs:
            if ref.directive == "automodule":
                names.append(ref.target)
            else:
                split = self.scanner.split_target(ref.target)
                if split is not None:
                    names.append(split[0])
        return list(dict.fromkeys(names))

    # ── Pass 2: build ────────────────────────────────────────────

    def build(
        self,
        content: ContentSet,
        scan: ScanResult,
        modules: dict[str, ModuleDoc],
    ) -> ContentTree:
        """Resolve every reference and return the ordered content tree.

        Raises:
            BrokenReferenceError: If any toctree entry or auto* target does
                not resolve; carries all of them
            ContentError: If a toctree page would overwrite a generated page
        """
        root_name = content.root.docname
        broken: list[BrokenReference] = []
        sections: list[TocSection] = []
        seen: set[str] = set()

        for toctree in content.toctrees:
            nodes: list[ContentNode] = []
            for item in toctree.items:
                node = self._node_for(item, content, scan)
                if node is None:
                    broken.append(
                        BrokenReference(reference=item.entry.target, docname=root_name, line=item.entry.line)
                    )
                    continue
                if node.uri in RESERVED_URIS:
                    raise ContentError(
                        f"toctree entry {item.entry.target!r} would overwrite the generated page {node.uri!r}"
                    ).with_context(file=str(self.doc_path(root_name)), docname=root_name, line=item.entry.line)
                if node.uri in seen:
                    content.warnings.append(
                        f"{root_name}:{item.entry.line}: duplicated toctree entry {item.entry.target!r}"
                    )
                    continue
                seen.add(node.uri)
                nodes.append(node)
            sections.append(TocSection(caption=toctree.caption, nodes=tuple(nodes)))

        for ref in content.object_refs:
            if not self._object_resolves(ref, scan, modules):
                broken.append(
                    BrokenReference(reference=ref.target, docname=ref.docname, line=ref.line, kind=ref.directive)
                )

        if broken:
            for ref in broken:
                logger.error("tree.broken_reference", reference=ref.reference, docname=ref.docname, line=ref.line)
            raise BrokenReferenceError(broken)

        root = ContentNode(reference=root_name, kind="page", title=content.root.title, uri=ROOT_URI)
        tree = ContentTree(root=root, sections=tuple(sections))
        logger.info("tree.built", nodes=len(tree.nodes), sections=len(tree.sections))
        return tree

    def _node_for(self, item: TocItem, content: ContentSet, scan: ScanResult) -> ContentNode | None:
        entry = item.entry
        if item.docname is not None:
            document = content.documents[item.docname]
            return ContentNode(
                reference=item.docname,
                kind="page",
                title=entry.title or document.title,
                uri=f"{item.docname}.html",
                line=entry.line,
            )
        if self.config.autodoc_enabled and scan.is_resolved(entry.target):
            return ContentNode(
                reference=entry.target,
                kind="module",
                title=entry.title or entry.target,
                uri=f"api/{entry.target}.html",
                line=entry.line,
            )
        return None

    def _object_resolves(self, ref: ObjectRef, scan: ScanResult, modules: dict[str, ModuleDoc]) -> bool:
        if ref.directive == "automodule":
            return scan.is_resolved(ref.target)

        split = self.scanner.split_target(ref.target)
        if split is None:
            return False
        module, qualname = split
        if not scan.is_resolved(module):
            return False
        if module not in modules:
            # Import failed: reported separately, rendered with a notice
            return True
        return modules[module].find(qualname) is not None
