"""
Docstring dialect detection and parsing.

Two section-header conventions are recognised:

* **numpydoc**: a header line followed by a dashed underline::

      Parameters
      ----------
      x : int
          The value.

* **Google**: a header line ending in a colon::

      Args:
          x (int): The value.

Detection is a heuristic over header text only.  Once a dialect is picked
the text is handed to ``docstring_parser`` in that style.  Anything that is
not recognised, or that the parser rejects, degrades to an opaque summary
with no structured sections.  This never raises.
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Sequence

import docstring_parser
from docstring_parser import DocstringStyle

from quilldoc.logging import get_logger
from quilldoc.models import EMPTY_DOCSTRING, ParamDoc, ParsedDocstring, RaisesDoc, ReturnDoc

logger = get_logger(__name__)

DIALECT_GOOGLE = "google"
DIALECT_NUMPY = "numpy"
DEFAULT_DIALECTS = (DIALECT_NUMPY, DIALECT_GOOGLE)

_STYLES = {
    DIALECT_GOOGLE: DocstringStyle.GOOGLE,
    DIALECT_NUMPY: DocstringStyle.NUMPYDOC,
}

NUMPY_HEADERS = (
    "Parameters",
    "Other Parameters",
    "Returns",
    "Yields",
    "Raises",
    "Attributes",
)

GOOGLE_HEADERS = (
    "Args",
    "Arguments",
    "Parameters",
    "Params",
    "Returns",
    "Return",
    "Yields",
    "Raises",
    "Exceptions",
    "Attributes",
)

_GOOGLE_HEADER_RE = re.compile(
    r"^\s*(" + "|".join(re.escape(h) for h in GOOGLE_HEADERS) + r"):\s*$"
)
_DASHES_RE = re.compile(r"^(\s*)-{3,}\s*$")

# docstring_parser meta keys that describe callable parameters
_PARAM_KEYS = {"param", "parameter", "arg", "argument", "key", "keyword", "other_param"}
_ATTRIBUTE_KEYS = {"attribute"}


def detect_dialect(text: str, dialects: Sequence[str] = DEFAULT_DIALECTS) -> str | None:
    """Return the first enabled dialect whose section headers appear in ``text``.

    Args:
        text: Cleaned docstring text
        dialects: Enabled dialects, in the order they are tried

    Returns:
        ``"numpy"``, ``"google"`` or None when no known header is present
    """
    lines = text.splitlines()
    for dialect in dialects:
        if dialect == DIALECT_NUMPY and _numpy_headers(lines):
            return DIALECT_NUMPY
        if dialect == DIALECT_GOOGLE and any(_GOOGLE_HEADER_RE.match(line) for line in lines):
            return DIALECT_GOOGLE
    return None


def _numpy_headers(lines: list[str]) -> list[int]:
    """Indexes of lines that are numpydoc section titles."""
    found = []
    for index, line in enumerate(lines[:-1]):
        if line.strip() in NUMPY_HEADERS and _DASHES_RE.match(lines[index + 1]):
            found.append(index)
    return found


def _normalise_numpy(text: str) -> str:
    """Make every numpydoc underline exactly as long as its title.

    docstring_parser only recognises underlines of the exact title length;
    authors routinely write longer ones.
    """
    lines = text.splitlines()
    for index in _numpy_headers(lines):
        title = lines[index].strip()
        indent = _DASHES_RE.match(lines[index + 1]).group(1)
        lines[index + 1] = indent + "-" * len(title)
    return "\n".join(lines)


def parse_docstring(
    text: str | None,
    dialects: Sequence[str] = DEFAULT_DIALECTS,
) -> ParsedDocstring:
    """Parse a docstring into summary, parameters, returns and raises.

    Args:
        text: Raw docstring (may be None or indented)
        dialects: Enabled dialects, in the order they are tried

    Returns:
        ParsedDocstring; ``dialect`` is None when the text was kept opaque
    """
    if not text or not text.strip():
        return EMPTY_DOCSTRING

    cleaned = inspect.cleandoc(text)
    dialect = detect_dialect(cleaned, dialects)
    if dialect is None:
        return opaque_docstring(cleaned)

    source = _normalise_numpy(cleaned) if dialect == DIALECT_NUMPY else cleaned
    try:
        parsed = docstring_parser.parse(source, style=_STYLES[dialect])
    except docstring_parser.ParseError as e:
        logger.debug("docstring.parse_failed", dialect=dialect, error=str(e))
        return opaque_docstring(cleaned)

    return ParsedDocstring(
        summary=(parsed.short_description or "").strip(),
        description=(parsed.long_description or "").strip(),
        dialect=dialect,
        params=tuple(_param(p) for p in parsed.params if p.args and p.args[0] in _PARAM_KEYS),
        attributes=tuple(_param(p) for p in parsed.params if p.args and p.args[0] in _ATTRIBUTE_KEYS),
        returns=_returns(parsed.returns),
        raises=tuple(
            RaisesDoc(type_name=r.type_name, description=(r.description or "").strip())
            for r in parsed.raises
        ),
    )


def opaque_docstring(text: str) -> ParsedDocstring:
    """Keep the text as-is: first paragraph as summary, the rest as description."""
    cleaned = inspect.cleandoc(text).strip()
    if not cleaned:
        return EMPTY_DOCSTRING
    head, _, rest = cleaned.partition("\n\n")
    return ParsedDocstring(
        summary=" ".join(line.strip() for line in head.splitlines()),
        description=rest.strip(),
        dialect=None,
    )


def _param(meta) -> ParamDoc:
    return ParamDoc(
        name=meta.arg_name,
        type_name=meta.type_name,
        description=(meta.description or "").strip(),
        is_optional=meta.is_optional,
        default=meta.default,
    )


def _returns(meta) -> ReturnDoc | None:
    if meta is None:
        return None
    return ReturnDoc(
        type_name=meta.type_name,
        description=(meta.description or "").strip(),
        is_generator=bool(meta.is_generator),
    )
