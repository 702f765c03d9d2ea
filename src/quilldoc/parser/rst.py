"""
Parser for the reStructuredText subset used by content declaration files.

The parser turns a ``.rst`` document into a flat list of blocks.  Section
titles are validated as they are read.  An underline (or overline) shorter
than the title text raises :class:`~quilldoc.errors.MalformedHeadingError`.
This holds for any text line directly followed by an adornment line, however
short.

Supported constructs:

* section titles, underline only or overline + underline
* paragraphs, block quotes, transitions
* bullet (``-``, ``*``, ``+``) and enumerated (``1.``, ``#.``) lists
* literal blocks introduced by ``::`` and doctest blocks (``>>>``)
* directives (``.. name:: argument``) with ``:option:`` lines and content
* comments (``..`` followed by anything that is not a directive)

Example:
    >>> doc = parse_document("Title\\n=====\\n\\nHello.\\n", docname="index")
    >>> doc.title
    'Title'
    >>> [type(b).__name__ for b in doc.blocks]
    ['Heading', 'Paragraph']
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path

from quilldoc.errors import MalformedHeadingError

# Every punctuation character docutils accepts as a section adornment.
ADORNMENT_CHARS = "!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~"

_ADORNMENT_RE = re.compile(r"^([" + re.escape(ADORNMENT_CHARS) + r"])\1*\s*$")
_DIRECTIVE_RE = re.compile(r"^\.\.\s+([A-Za-z][\w:+-]*)::(?:\s+(.*))?$")
_COMMENT_RE = re.compile(r"^\.\.(\s|$)")
_OPTION_RE = re.compile(r"^:([\w-]+):(?:\s+(.*))?$")
_BULLET_RE = re.compile(r"^([-*+])(\s+)(.*)$")
_ENUM_RE = re.compile(r"^(\d+|#)([.)])(\s+)(.*)$")
_TOC_ENTRY_RE = re.compile(r"^(.*?)\s*<([^<>]+)>$")

# Directives understood by the renderer.
AUTODOC_DIRECTIVES = ("automodule", "autoclass", "autofunction", "autoexception")
ADMONITIONS = (
    "note",
    "warning",
    "tip",
    "hint",
    "important",
    "attention",
    "caution",
    "danger",
    "error",
    "seealso",
)
CODE_DIRECTIVES = ("code-block", "code", "sourcecode")
KNOWN_DIRECTIVES = frozenset(
    ("toctree", "currentmodule", "module")
    + AUTODOC_DIRECTIVES
    + ADMONITIONS
    + CODE_DIRECTIVES
)


# =============================================================================
# Block model
# =============================================================================


@dataclass(frozen=True)
class Heading:
    title: str
    level: int
    anchor: str
    line: int


@dataclass(frozen=True)
class Paragraph:
    text: str
    line: int


@dataclass(frozen=True)
class ListBlock:
    items: tuple[str, ...]
    ordered: bool
    line: int


@dataclass(frozen=True)
class LiteralBlock:
    text: str
    language: str | None
    line: int


@dataclass(frozen=True)
class BlockQuote:
    text: str
    line: int


@dataclass(frozen=True)
class Transition:
    line: int


@dataclass(frozen=True)
class Directive:
    """A ``.. name:: argument`` block.

    ``content_line`` is the 1-based line number of ``content[0]``.
    """

    name: str
    argument: str
    options: dict[str, str]
    content: tuple[str, ...]
    line: int
    content_line: int

    def flag(self, option: str) -> bool:
        return option in self.options


@dataclass(frozen=True)
class TocEntry:
    """One line of toctree content: ``target`` or ``Title <target>``."""

    target: str
    title: str | None
    line: int


Block = Heading | Paragraph | ListBlock | LiteralBlock | BlockQuote | Transition | Directive


@dataclass
class Document:
    """A parsed ``.rst`` file."""

    docname: str
    path: Path | None
    blocks: list[Block] = field(default_factory=list)

    @property
    def title(self) -> str:
        for block in self.blocks:
            if isinstance(block, Heading):
                return block.title
        return self.docname

    @property
    def headings(self) -> list[Heading]:
        return [b for b in self.blocks if isinstance(b, Heading)]

    def directives(self, *names: str) -> list[Directive]:
        return [b for b in self.blocks if isinstance(b, Directive) and (not names or b.name in names)]


# =============================================================================
# Helpers
# =============================================================================


def column_width(text: str) -> int:
    """Display width of ``text``: wide East-Asian characters count as two."""
    width = 0
    for char in text:
        if unicodedata.combining(char):
            continue
        width += 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1
    return width


def slugify(text: str) -> str:
    """Turn a title into an HTML id (``Getting Started`` → ``getting-started``)."""
    slug = re.sub(r"[^\w]+", "-", text.lower(), flags=re.UNICODE).strip("-_")
    return slug or "section"


def is_adornment(line: str) -> bool:
    return bool(line) and not line[0].isspace() and bool(_ADORNMENT_RE.match(line))


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _is_text(line: str) -> bool:
    return bool(line.strip()) and not line[0].isspace()


def parse_toc_entries(directive: Directive) -> list[TocEntry]:
    """Split toctree content into entries, keeping line numbers."""
    entries = []
    for offset, raw in enumerate(directive.content):
        text = raw.strip()
        if not text:
            continue
        match = _TOC_ENTRY_RE.match(text)
        if match and match.group(1):
            title, target = match.group(1).strip(), match.group(2).strip()
        else:
            title, target = None, text
        entries.append(TocEntry(target=target, title=title, line=directive.content_line + offset))
    return entries


# =============================================================================
# Parser
# =============================================================================


class RstParser:
    """Line-oriented parser for one document.

    Args:
        lines: Document lines (no trailing newlines)
        path: Source file, used in error messages
        first_line: Line number of ``lines[0]`` (for nested fragments)
        titles: Whether section titles are allowed; fragments such as
            docstring text or directive content set this to False and treat
            adornment lines as plain text
    """

    def __init__(
        self,
        lines: list[str],
        path: Path | None = None,
        *,
        first_line: int = 1,
        titles: bool = True,
    ):
        self.lines = [line.rstrip().expandtabs(8) for line in lines]
        self.path = path
        self.first_line = first_line
        self.titles = titles
        self.blocks: list[Block] = []
        self._styles: list[tuple[str, bool]] = []
        self._anchors: set[str] = set()

    # ── Entry point ──────────────────────────────────────────────

    def parse(self) -> list[Block]:
        i = 0
        n = len(self.lines)
        while i < n:
            line = self.lines[i]
            if not line.strip():
                i += 1
                continue

            if line[0].isspace():
                i = self._block_quote(i)
            elif _DIRECTIVE_RE.match(line):
                i = self._directive(i)
            elif _COMMENT_RE.match(line):
                _, i = self._indented_block(i + 1)
            elif self.titles and (end := self._title(i)) is not None:
                i = end
            elif is_adornment(line) and len(line.strip()) >= 4 and self._isolated(i):
                self.blocks.append(Transition(line=self._lineno(i)))
                i += 1
            elif _BULLET_RE.match(line) or _ENUM_RE.match(line):
                i = self._list(i)
            elif line.startswith(">>>"):
                i = self._doctest(i)
            else:
                i = self._paragraph(i)
        return self.blocks

    # ── Positions ────────────────────────────────────────────────

    def _lineno(self, index: int) -> int:
        return self.first_line + index

    def _line(self, index: int) -> str:
        return self.lines[index] if 0 <= index < len(self.lines) else ""

    def _isolated(self, index: int) -> bool:
        return not self._line(index - 1).strip() and not self._line(index + 1).strip()

    # ── Section titles ───────────────────────────────────────────

    def _title(self, i: int) -> int | None:
        """Parse a title starting at ``i``; return the next index or None."""
        line = self.lines[i]
        below = self._line(i + 1)

        # Overline + title + underline
        if is_adornment(line) and _is_text(below) or (
            is_adornment(line) and below.strip() and below[0].isspace()
        ):
            under = self._line(i + 2)
            if is_adornment(under) and under.strip()[0] == line.strip()[0]:
                title = below.strip()
                self._check_width(i + 1, title, line.strip())
                self._check_width(i + 1, title, under.strip())
                self._add_heading(title, (line.strip()[0], True), i + 1)
                return i + 3
            return None

        # Title + underline
        if _is_text(line) and not is_adornment(line) and is_adornment(below):
            title = line.strip()
            adornment = below.strip()
            self._check_width(i, title, adornment)
            self._add_heading(title, (adornment[0], False), i)
            return i + 2

        return None

    def _check_width(self, index: int, title: str, adornment: str) -> None:
        required = column_width(title)
        if len(adornment) < required:
            raise MalformedHeadingError(
                self.path or "<string>", self._lineno(index), title, adornment, required
            )

    def _add_heading(self, title: str, style: tuple[str, bool], index: int) -> None:
        if style not in self._styles:
            self._styles.append(style)
        level = self._styles.index(style) + 1

        anchor = base = slugify(title)
        counter = 1
        while anchor in self._anchors:
            anchor = f"{base}-{counter}"
            counter += 1
        self._anchors.add(anchor)

        self.blocks.append(Heading(title=title, level=level, anchor=anchor, line=self._lineno(index)))

    # ── Indented material ────────────────────────────────────────

    def _indented_block(self, start: int, *, min_indent: int = 1) -> tuple[list[str], int]:
        """Collect the indented block beginning at ``start``.

        Returns the dedented lines (trailing blanks removed) and the index of
        the first line after the block.
        """
        end = start
        while end < len(self.lines):
            line = self.lines[end]
            if line.strip() and _indent(line) < min_indent:
                break
            end += 1

        block = self.lines[start:end]
        while block and not block[-1].strip():
            block.pop()
        indents = [_indent(line) for line in block if line.strip()]
        cut = min(indents) if indents else 0
        return [line[cut:] for line in block], start + len(block) if block else start

    def _block_quote(self, i: int) -> int:
        block, end = self._indented_block(i)
        text = "\n".join(block).strip("\n")
        if text.startswith(">>>"):
            self.blocks.append(LiteralBlock(text=text, language="pycon", line=self._lineno(i)))
        else:
            self.blocks.append(BlockQuote(text=text, line=self._lineno(i)))
        return max(end, i + 1)

    # ── Directives ───────────────────────────────────────────────

    def _directive(self, i: int) -> int:
        match = _DIRECTIVE_RE.match(self.lines[i])
        name = match.group(1).lower()
        if name.startswith("py:"):
            name = name[3:]
        argument = (match.group(2) or "").strip()

        block, end = self._indented_block(i + 1)
        options: dict[str, str] = {}
        index = 0
        while index < len(block):
            option = _OPTION_RE.match(block[index])
            if not option:
                break
            options[option.group(1)] = (option.group(2) or "").strip()
            index += 1
        while index < len(block) and not block[index].strip():
            index += 1

        self.blocks.append(
            Directive(
                name=name,
                argument=argument,
                options=options,
                content=tuple(block[index:]),
                line=self._lineno(i),
                content_line=self._lineno(i + 1 + index),
            )
        )
        return max(end, i + 1)

    # ── Lists ────────────────────────────────────────────────────

    def _list(self, i: int) -> int:
        first = self.lines[i]
        bullet = _BULLET_RE.match(first)
        ordered = bullet is None
        items: list[str] = []
        start_line = self._lineno(i)

        while i < len(self.lines):
            line = self.lines[i]
            if not line.strip():
                nxt = self._next_nonblank(i)
                if nxt is None or not self._is_item(self.lines[nxt], ordered):
                    break
                i = nxt
                continue
            if not self._is_item(line, ordered):
                break
            match = _ENUM_RE.match(line) if ordered else _BULLET_RE.match(line)
            marker_width = len(line) - len(match.groups()[-1])
            text = [match.groups()[-1]]
            body, end = self._indented_block(i + 1, min_indent=marker_width) if i + 1 < len(self.lines) else ([], i + 1)
            text.extend(body)
            items.append("\n".join(text).strip())
            i = max(end, i + 1)

        self.blocks.append(ListBlock(items=tuple(items), ordered=ordered, line=start_line))
        return i

    def _is_item(self, line: str, ordered: bool) -> bool:
        return bool(_ENUM_RE.match(line) if ordered else _BULLET_RE.match(line))

    def _next_nonblank(self, i: int) -> int | None:
        while i < len(self.lines):
            if self.lines[i].strip():
                return i
            i += 1
        return None

    # ── Paragraphs and literal blocks ────────────────────────────

    def _doctest(self, i: int) -> int:
        start = i
        while i < len(self.lines) and self.lines[i].strip():
            i += 1
        text = "\n".join(self.lines[start:i])
        self.blocks.append(LiteralBlock(text=text, language="pycon", line=self._lineno(start)))
        return i

    def _paragraph(self, i: int) -> int:
        start = i
        collected: list[str] = []
        while i < len(self.lines):
            line = self.lines[i]
            if not line.strip():
                break
            # A title directly under paragraph text starts a new block.
            if (
                collected
                and self.titles
                and _is_text(line)
                and not is_adornment(line)
                and is_adornment(self._line(i + 1))
            ):
                break
            collected.append(line.strip())
            i += 1

        text = "\n".join(collected)
        literal_follows = text.endswith("::")
        if literal_follows:
            if text == "::":
                text = ""
            elif text.endswith(" ::") or text.endswith("\n::"):
                text = text[:-3].rstrip()
            else:
                text = text[:-1]
        if text:
            self.blocks.append(Paragraph(text=text, line=self._lineno(start)))

        if literal_follows:
            nxt = self._next_nonblank(i)
            if nxt is not None and self.lines[nxt][0].isspace():
                block, end = self._indented_block(nxt)
                self.blocks.append(
                    LiteralBlock(text="\n".join(block), language=None, line=self._lineno(nxt))
                )
                return end
        return max(i, start + 1)


# =============================================================================
# Public API
# =============================================================================


def parse_document(text: str, docname: str, path: Path | None = None) -> Document:
    """Parse a full document, validating section titles.

    Raises:
        MalformedHeadingError: If a title's adornment is shorter than its text
    """
    blocks = RstParser(text.splitlines(), path).parse()
    return Document(docname=docname, path=path, blocks=blocks)


def read_document(path: Path, docname: str) -> Document:
    """Read and parse a ``.rst`` file."""
    return parse_document(path.read_text(encoding="utf-8"), docname, path)


def parse_fragment(text: str | tuple[str, ...] | list[str], first_line: int = 1) -> list[Block]:
    """Parse text that may not contain section titles (docstrings, directive bodies)."""
    lines = text.splitlines() if isinstance(text, str) else list(text)
    return RstParser(lines, first_line=first_line, titles=False).parse()
