"""
HTML renderer - the fixed "quill" theme.

Writes one page per content node, the general and module indexes, the
search page with its index, and the static assets.

Output layout::

    index.html                root document
    <docname>.html            page nodes
    api/<module>.html         module nodes
    genindex.html             every documented object
    py-modindex.html          every documented module
    search.html               client-side search
    searchindex.js
    _static/                  quill.css, pygments.css, search.js, then
                              the project's static_paths on top

Guardrails:
    - Do NOT leave files from a previous build behind
      ✅ The output directory is emptied first
    - Do NOT emit anything that varies between identical builds
      ✅ Sorted JSON, ordered iteration, timestamp from SOURCE_DATE_EPOCH
"""

from __future__ import annotations

import json
import re
import shutil
from itertools import groupby
from pathlib import Path

from markupsafe import Markup

from quilldoc.config import BuildConfig
from quilldoc.errors import RenderError
from quilldoc.logging import get_logger
from quilldoc.models import ContentNode, ContentTree, ImportFailure, Member, ModuleDoc
from quilldoc.parser.rst import (
    AUTODOC_DIRECTIVES,
    BlockQuote,
    Directive,
    Document,
    Heading,
    ListBlock,
    LiteralBlock,
    Paragraph,
)
from quilldoc.renderers.base import STATIC_DIR, BaseRenderer
from quilldoc.renderers.inventory import Inventory, InventoryEntry
from quilldoc.renderers.markup import Highlighter, MarkupRenderer
from quilldoc.scanner import SourceScanner
from quilldoc.tree import ContentSet

logger = get_logger(__name__)

KIND_LABELS = {
    "module": "module",
    "function": "function",
    "class": "class",
    "exception": "exception",
    "method": "method",
    "classmethod": "classmethod",
    "staticmethod": "staticmethod",
    "property": "property",
}

_TERM_RE = re.compile(r"\w+", re.UNICODE)


def annotation_for(member: Member, name: str) -> str | None:
    """Signature annotation of parameter ``name``, for undocumented types."""
    for param in member.parameters:
        if param.name == name.lstrip("*"):
            return param.annotation
    return None


class HtmlRenderer(BaseRenderer):
    """Render a validated content tree to static HTML.

    Example:
        >>> renderer = HtmlRenderer(config, tree, content, modules, failures, scanner)
        >>> renderer.render(Path("_build/html"))
        ['index.html', 'usage.html', 'api/example_module.html', ...]
    """

    template_name = "page.html"

    def __init__(
        self,
        config: BuildConfig,
        tree: ContentTree,
        content: ContentSet,
        modules: dict[str, ModuleDoc],
        failures: list[ImportFailure],
        scanner: SourceScanner,
        template_dir: Path | None = None,
        static_dir: Path | None = None,
    ):
        super().__init__(config, template_dir)
        self.tree = tree
        self.content = content
        self.modules = modules
        self.failures = {failure.module: failure for failure in failures}
        self.scanner = scanner
        self.static_dir = Path(static_dir) if static_dir is not None else STATIC_DIR

        self.highlighter = Highlighter()
        self.inventory = Inventory()
        self.warnings: list[str] = []

        self.env.globals.update(kind_labels=KIND_LABELS, annotation_for=annotation_for)
        self.macros = self._get_template("macros.html").module

        root = content.root
        self._sections = {
            directive.line: section
            for directive, section in zip(root.directives("toctree"), tree.sections)
        }
        self._object_refs = {(ref.docname, ref.line): ref for ref in content.object_refs}
        self._pages = {node.reference: (node.uri, node.title) for node in tree.nodes if not node.is_module}
        self._search_text: dict[str, list[str]] = {}

    # ── Entry point ──────────────────────────────────────────────

    def render(self, output_dir: Path) -> list[str]:
        output_dir = Path(output_dir)
        self._metadata = self._get_metadata()
        self._prepare(output_dir)
        self._build_inventory()

        written = []
        nodes = self.tree.nodes
        for index, node in enumerate(nodes):
            prev_node = nodes[index - 1] if index > 0 else None
            next_node = nodes[index + 1] if index + 1 < len(nodes) else None
            body = self._module_page(node) if node.is_module else self._document_page(node)
            self._write_page(output_dir, "page.html", node.uri, node.title, body, prev_node, next_node)
            written.append(node.uri)

        self._write_page(output_dir, "genindex.html", "genindex.html", "Index", groups=self._index_groups())
        self._write_page(output_dir, "modindex.html", "py-modindex.html", "Python Module Index", modules=self.inventory.modules())
        self._write_page(output_dir, "search.html", "search.html", "Search")
        written.extend(["genindex.html", "py-modindex.html", "search.html"])

        self._write(output_dir, "searchindex.js", self._search_index())
        self._copy_static(output_dir)

        for warning in self.warnings:
            logger.warning("render.warning", message=warning)
        logger.info("render.complete", output_dir=str(output_dir), pages=len(written))
        return written

    # ── Output directory ─────────────────────────────────────────

    def _prepare(self, output_dir: Path) -> None:
        """Empty (or create) the output directory."""
        try:
            if output_dir.exists():
                for child in sorted(output_dir.iterdir()):
                    if child.is_dir() and not child.is_symlink():
                        shutil.rmtree(child)
                    else:
                        child.unlink()
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RenderError(f"Cannot prepare output directory {output_dir}: {e}", cause=e) from e

    def _copy_static(self, output_dir: Path) -> None:
        static_out = output_dir / "_static"
        try:
            shutil.copytree(self.static_dir, static_out, dirs_exist_ok=True)
            self._write(output_dir, "_static/pygments.css", self.highlighter.stylesheet())
            for path in self.config.resolved_static_paths:
                if path.is_dir():
                    shutil.copytree(path, static_out, dirs_exist_ok=True)
                elif path.is_file():
                    shutil.copy2(path, static_out / path.name)
                else:
                    self.warnings.append(f"static path {path} does not exist")
        except OSError as e:
            raise RenderError(f"Cannot copy static files: {e}", cause=e) from e

    # ── Inventory ────────────────────────────────────────────────

    def _build_inventory(self) -> None:
        """Register every object where it is first documented, in page order."""
        for node in self.tree.nodes:
            if node.is_module:
                self._register_module(node.reference, node.uri)
                continue
            document = self.content.documents[node.reference]
            for directive in document.directives(*AUTODOC_DIRECTIVES):
                ref = self._object_refs.get((document.docname, directive.line))
                if ref is None:
                    continue
                if ref.directive == "automodule":
                    self._register_module(ref.target, node.uri)
                    continue
                member = self._member_for(ref.target)
                if member is not None:
                    self._report_duplicates(self.inventory.add_member(member, node.uri), node.uri)

    def _register_module(self, name: str, uri: str) -> None:
        if name in self.modules:
            self._report_duplicates(self.inventory.add_module(self.modules[name], uri), uri)
        elif name in self.failures:
            self.inventory.add(
                InventoryEntry(fullname=name, kind="module", module=name, uri=uri, anchor=f"module-{name}")
            )

    def _report_duplicates(self, names: list[str], uri: str) -> None:
        for name in names:
            first = self.inventory.get(name)
            self.warnings.append(
                f"duplicate object description of {name} in {uri}, other instance in {first.uri}"
            )

    def _member_for(self, target: str) -> Member | None:
        split = self.scanner.split_target(target)
        if split is None:
            return None
        module, qualname = split
        if module not in self.modules:
            return None
        return self.modules[module].find(qualname)

    # ── Pages ────────────────────────────────────────────────────

    def _renderer(self, node: ContentNode, current_module: str | None = None) -> MarkupRenderer:
        return MarkupRenderer(
            uri=node.uri,
            inventory=self.inventory,
            highlighter=self.highlighter,
            pages=self._pages,
            current_module=current_module,
            directive_hook=lambda directive, r: self._directive(node.reference, directive, r),
        )

    def _document_page(self, node: ContentNode) -> Markup:
        document = self.content.documents[node.reference]
        self._search_text[node.uri] = self._document_text(document)
        return self._renderer(node).blocks(document.blocks)

    def _module_page(self, node: ContentNode) -> Markup:
        name = node.reference
        if name in self.modules:
            self._search_text[node.uri] = _module_text(self.modules[name])
        else:
            self._search_text[node.uri] = [name]
        return self._module_body(name, self._renderer(node, current_module=name), with_title=True)

    def _module_body(self, name: str, r: MarkupRenderer, with_title: bool) -> Markup:
        if name in self.modules:
            return Markup(self.macros.module_doc(self.modules[name], r, with_title))
        failure = self.failures.get(name)
        if failure is not None:
            return Markup(self.macros.import_failure(name, failure, with_title))
        return Markup("")

    def _directive(self, docname: str, directive: Directive, r: MarkupRenderer) -> Markup:
        """Render the directives that need site-wide context."""
        if directive.name == "toctree":
            if docname != self.content.root.docname or directive.flag("hidden"):
                return Markup("")
            section = self._sections.get(directive.line)
            return Markup(self.macros.toctree(section, r)) if section is not None else Markup("")

        if directive.name in AUTODOC_DIRECTIVES:
            ref = self._object_refs.get((docname, directive.line))
            if ref is None:
                return Markup("")
            if ref.directive == "automodule":
                r.current_module = ref.target
                return self._module_body(ref.target, r, with_title=False)

            split = self.scanner.split_target(ref.target)
            if split is not None and split[0] in self.failures:
                return Markup(self.macros.import_failure(split[0], self.failures[split[0]]))
            member = self._member_for(ref.target)
            if member is None:
                return Markup("")
            return Markup(self.macros.member_doc(member, r))

        return Markup("")

    def _write_page(
        self,
        output_dir: Path,
        template_name: str,
        uri: str,
        page_title: str,
        body: Markup | None = None,
        prev_node: ContentNode | None = None,
        next_node: ContentNode | None = None,
        **extra,
    ) -> None:
        r = MarkupRenderer(uri=uri, inventory=self.inventory, highlighter=self.highlighter)
        context = {
            **self._metadata,
            "page_title": page_title,
            "body": body,
            "prev": prev_node,
            "next": next_node,
            "nav": self.tree.sections,
            "current_uri": uri,
            "pathto": r.pathto,
            "kind_labels": KIND_LABELS,
            **extra,
        }
        html = self._get_template(template_name).render(**context)
        self._write(output_dir, uri, html)
        logger.debug("render.page_written", uri=uri)

    # ── Indexes ──────────────────────────────────────────────────

    def _index_groups(self) -> list[tuple[str, list[InventoryEntry]]]:
        def letter(entry: InventoryEntry) -> str:
            first = entry.name.rsplit(".", 1)[-1][:1].upper()
            return first if first.isalpha() else "_"

        return [(key, list(group)) for key, group in groupby(self.inventory.sorted_entries(), key=letter)]

    def _search_index(self) -> str:
        nodes = self.tree.nodes
        positions = {node.uri: index for index, node in enumerate(nodes)}

        terms: dict[str, set[int]] = {}
        for node in nodes:
            for text in self._search_text.get(node.uri, []):
                for term in _TERM_RE.findall(text.lower()):
                    if len(term) > 1:
                        terms.setdefault(term, set()).add(positions[node.uri])

        index = {
            "docnames": [node.reference for node in nodes],
            "filenames": [node.uri for node in nodes],
            "titles": [node.title for node in nodes],
            "terms": {term: sorted(docs) for term, docs in terms.items()},
            "objects": {
                entry.fullname: [positions[entry.uri], entry.anchor, entry.kind]
                for entry in self.inventory
                if entry.uri in positions
            },
        }
        return "Search.setIndex(" + json.dumps(index, sort_keys=True, separators=(",", ":")) + ")\n"

    def _document_text(self, document: Document) -> list[str]:
        texts = [document.title]
        for block in document.blocks:
            if isinstance(block, Heading):
                texts.append(block.title)
            elif isinstance(block, (Paragraph, BlockQuote, LiteralBlock)):
                texts.append(block.text)
            elif isinstance(block, ListBlock):
                texts.extend(block.items)
            elif isinstance(block, Directive):
                texts.extend(block.content)
                ref = self._object_refs.get((document.docname, block.line))
                if ref is not None and ref.directive == "automodule" and ref.target in self.modules:
                    texts.extend(_module_text(self.modules[ref.target]))
                elif ref is not None:
                    member = self._member_for(ref.target)
                    if member is not None:
                        texts.extend(_member_text(member))
        return texts


def _module_text(module: ModuleDoc) -> list[str]:
    texts = [module.name, module.docstring.summary, module.docstring.description]
    for member in module.members:
        texts.extend(_member_text(member))
    return texts


def _member_text(member: Member) -> list[str]:
    texts = []
    for item in member.walk():
        doc = item.docstring
        texts.extend([item.qualname, doc.summary, doc.description])
        texts.extend(param.description for param in doc.params)
        if doc.returns is not None:
            texts.append(doc.returns.description)
    return texts
