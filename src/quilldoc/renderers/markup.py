"""
Markup rendering - reStructuredText blocks and inline markup to HTML.

``MarkupRenderer`` is created once per output page.  It knows the page's URI
so every link it emits is relative and the site can be served from any path
(or opened straight from disk).

Inline markup handled:

* ````literal````, ``*emphasis*``, ``**strong**``
* ```text <https://example.com>`_`` hyperlinks
* roles: ``:func:``, ``:meth:``, ``:class:``, ``:exc:``, ``:mod:``,
  ``:obj:``, ``:attr:``, ``:data:`` (resolved against the inventory, with
  the ``~`` short form and ``Title <target>`` explicit titles), ``:doc:``
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Callable, Iterable

from markupsafe import Markup, escape
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.util import ClassNotFound

from quilldoc.parser.rst import (
    ADMONITIONS,
    CODE_DIRECTIVES,
    Block,
    BlockQuote,
    Directive,
    Heading,
    ListBlock,
    LiteralBlock,
    Paragraph,
    Transition,
    parse_fragment,
)
from quilldoc.renderers.inventory import Inventory

_INLINE_RE = re.compile(
    r"``(?P<literal>.+?)``"
    r"|:(?P<role>[a-z]+(?::[a-z]+)?):`(?P<role_text>[^`]+)`"
    r"|`(?P<link_text>[^`<]*?)\s*<(?P<link_url>[^`>]+)>`__?"
    r"|\*\*(?P<strong>[^*\s](?:[^*]*[^*\s])?)\*\*"
    r"|\*(?P<emphasis>[^*\s](?:[^*]*[^*\s])?)\*"
    r"|`(?P<interpreted>[^`]+)`(?!_)",
    re.DOTALL,
)
_EXPLICIT_TITLE_RE = re.compile(r"^(.+?)\s*<([^<>]+)>$", re.DOTALL)

OBJECT_ROLES = ("func", "meth", "class", "exc", "mod", "obj", "attr", "data")
CALLABLE_ROLES = ("func", "meth")

ADMONITION_TITLES = {name: name.capitalize() for name in ADMONITIONS}
ADMONITION_TITLES["seealso"] = "See also"

DEFAULT_LANGUAGE = "python"


class Highlighter:
    """Pygments syntax highlighting with one shared stylesheet."""

    def __init__(self, style: str = "default"):
        self.formatter = HtmlFormatter(cssclass="highlight", style=style)

    def highlight(self, code: str, language: str | None = None) -> Markup:
        try:
            lexer = get_lexer_by_name(language or DEFAULT_LANGUAGE)
        except ClassNotFound:
            lexer = TextLexer()
        html = highlight(code, lexer, self.formatter)
        return Markup(f'<div class="highlight-{escape(language or DEFAULT_LANGUAGE)} notranslate">{html}</div>')

    def stylesheet(self) -> str:
        return self.formatter.get_style_defs(".highlight") + "\n"


def relative_uri(base: str, target: str) -> str:
    """Link from page ``base`` to ``target``; both relative to the output root.

    Example:
        >>> relative_uri("api/pkg.mod.html", "index.html")
        '../index.html'
    """
    target_path, _, fragment = target.partition("#")
    if target_path == base:
        rel = ""
    else:
        rel = posixpath.relpath(target_path, posixpath.dirname(base) or ".")
    if fragment:
        return f"{rel}#{fragment}"
    return rel or posixpath.basename(base)


# Hook for directives that need page-level context (toctree, auto*)
DirectiveHook = Callable[[Directive, "MarkupRenderer"], Markup]


class MarkupRenderer:
    """Render parsed blocks and inline markup for one page.

    Args:
        uri: The page being rendered, relative to the output root
        inventory: Documented objects, for cross-reference roles
        highlighter: Shared syntax highlighter
        pages: Docname to (uri, title) for ``:doc:`` links
        current_module: Module used to resolve unqualified role targets
        directive_hook: Renders directives this class does not handle itself
    """

    def __init__(
        self,
        uri: str,
        inventory: Inventory,
        highlighter: Highlighter,
        pages: dict[str, tuple[str, str]] | None = None,
        current_module: str | None = None,
        directive_hook: DirectiveHook | None = None,
    ):
        self.uri = uri
        self.inventory = inventory
        self.highlighter = highlighter
        self.pages = pages or {}
        self.current_module = current_module
        self.directive_hook = directive_hook

    def pathto(self, target: str) -> str:
        return relative_uri(self.uri, target)

    # ── Blocks ───────────────────────────────────────────────────

    def text(self, text: str | None) -> Markup:
        """Render free text (docstring body, directive content)."""
        if not text:
            return Markup("")
        return self.blocks(parse_fragment(text))

    def blocks(self, blocks: Iterable[Block]) -> Markup:
        return Markup("\n").join(self.block(block) for block in blocks)

    def block(self, block: Block) -> Markup:
        if isinstance(block, Heading):
            level = min(block.level, 6)
            return Markup(
                '<h{0} id="{1}">{2}<a class="headerlink" href="#{1}" title="Permalink to this heading">¶</a></h{0}>'
            ).format(level, block.anchor, self.inline(block.title))
        if isinstance(block, Paragraph):
            return Markup("<p>{}</p>").format(self.inline(block.text))
        if isinstance(block, ListBlock):
            tag = "ol" if block.ordered else "ul"
            items = Markup("\n").join(Markup("<li>{}</li>").format(self.text(item)) for item in block.items)
            return Markup('<{0} class="simple">\n{1}\n</{0}>').format(Markup(tag), items)
        if isinstance(block, LiteralBlock):
            return self.highlighter.highlight(block.text, block.language)
        if isinstance(block, BlockQuote):
            return Markup("<blockquote>\n{}\n</blockquote>").format(self.text(block.text))
        if isinstance(block, Transition):
            return Markup('<hr class="docutils">')
        if isinstance(block, Directive):
            return self.directive(block)
        return Markup("")

    def directive(self, directive: Directive) -> Markup:
        if directive.name in CODE_DIRECTIVES:
            language = directive.argument or directive.options.get("language") or DEFAULT_LANGUAGE
            return self.highlighter.highlight("\n".join(directive.content), language)

        if directive.name in ADMONITIONS:
            lines = list(directive.content)
            if directive.argument:
                lines = [directive.argument, ""] + lines
            return Markup(
                '<div class="admonition {0}">\n<p class="admonition-title">{1}</p>\n{2}\n</div>'
            ).format(directive.name, ADMONITION_TITLES[directive.name], self.blocks(parse_fragment(lines)))

        if directive.name in ("currentmodule", "module"):
            self.current_module = directive.argument or None
            return Markup("")

        if self.directive_hook is not None:
            return self.directive_hook(directive, self)
        return Markup("")

    # ── Inline ───────────────────────────────────────────────────

    def inline(self, text: str | None) -> Markup:
        """Render inline markup; everything else is HTML-escaped."""
        if not text:
            return Markup("")
        parts: list[Markup] = []
        position = 0
        for match in _INLINE_RE.finditer(text):
            parts.append(escape(text[position : match.start()]))
            parts.append(self._inline_match(match))
            position = match.end()
        parts.append(escape(text[position:]))
        return Markup("").join(parts)

    def _inline_match(self, match: re.Match) -> Markup:
        groups = match.groupdict()
        if groups["literal"] is not None:
            return Markup('<code class="docutils literal notranslate">{}</code>').format(groups["literal"])
        if groups["role"] is not None:
            return self.role(groups["role"], groups["role_text"])
        if groups["link_url"] is not None:
            url = groups["link_url"].strip()
            label = groups["link_text"].strip() or url
            return Markup('<a class="reference external" href="{}">{}</a>').format(url, label)
        if groups["strong"] is not None:
            return Markup("<strong>{}</strong>").format(groups["strong"])
        if groups["emphasis"] is not None:
            return Markup("<em>{}</em>").format(groups["emphasis"])
        # Default role: interpreted text renders as a cross-reference when it resolves
        return self.role("obj", groups["interpreted"])

    def role(self, name: str, text: str) -> Markup:
        """Render ``:name:`text```, resolving cross-references."""
        name = name.rsplit(":", 1)[-1]
        explicit = _EXPLICIT_TITLE_RE.match(text.strip())
        if explicit:
            title, target = explicit.group(1).strip(), explicit.group(2).strip()
        else:
            title, target = None, text.strip()

        if name == "doc":
            return self._doc_link(target, title)

        if name not in OBJECT_ROLES:
            return Markup("<em>{}</em>").format(title or target)

        short = target.startswith("~")
        target = target.lstrip("~")
        if title is None:
            title = target.rsplit(".", 1)[-1] if short else target.lstrip(".")
            if name in CALLABLE_ROLES and not title.endswith("()"):
                title += "()"

        entry = self.inventory.lookup(target, self.current_module)
        code = Markup('<code class="xref py py-{}">{}</code>').format(name, title)
        if entry is None:
            return code
        return Markup('<a class="reference internal" href="{}" title="{}">{}</a>').format(
            self.pathto(entry.url), entry.fullname, code
        )

    def type_link(self, type_name: str | None) -> Markup:
        """Link a type name to its documentation when it is in the inventory."""
        if not type_name:
            return Markup("")
        entry = self.inventory.lookup(type_name, self.current_module)
        if entry is None or entry.kind not in ("class", "exception"):
            return escape(type_name)
        return Markup('<a class="reference internal" href="{}" title="{}">{}</a>').format(
            self.pathto(entry.url), entry.fullname, type_name
        )

    def _doc_link(self, target: str, title: str | None) -> Markup:
        docname = target.strip("/")
        if docname.endswith(".rst"):
            docname = docname[:-4]
        page = self.pages.get(docname)
        if page is None:
            return Markup("<em>{}</em>").format(title or target)
        uri, page_title = page
        return Markup('<a class="reference internal" href="{}">{}</a>').format(
            self.pathto(uri), title or page_title
        )
