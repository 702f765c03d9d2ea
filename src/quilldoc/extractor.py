"""
Doc extractor - introspect loaded modules into ModuleDoc records.

Walks the members of an imported module (functions, classes, and the
methods, static/class methods and properties of those classes) and parses
each docstring with the enabled dialects.

Example:
    >>> extractor = DocExtractor(dialects=("numpy", "google"))
    >>> doc = extractor.extract(module)
    >>> for member in doc.members:
    ...     print(member.name, member.signature, member.documented)

Architecture:
    ::

        ModuleType
            │
            ▼
        module members ── __all__ order, else definition order
            │              (names imported from elsewhere are skipped)
            ├──► function ──► Member(kind="function")
            │
            └──► class ─────► Member(kind="class" | "exception")
                    │
                    └──► vars(cls) ──► method / classmethod /
                                       staticmethod / property

Guardrails:
    - Do NOT drop undocumented members
      ✅ They are kept with ``documented=False`` and an empty docstring
    - Do NOT let the repr of a default leak a memory address
      ✅ ``<object at 0x7f...>`` becomes ``<object>`` so rebuilds are identical
"""

from __future__ import annotations

import dataclasses
import inspect
import re
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import Any

from quilldoc.logging import get_logger
from quilldoc.models import EMPTY_DOCSTRING, Member, ModuleDoc, Parameter
from quilldoc.parser.docstrings import DEFAULT_DIALECTS, parse_docstring

logger = get_logger(__name__)

_ADDRESS_RE = re.compile(r" at 0x[0-9a-fA-F]+")

# Member kinds whose first parameter (self or cls) is implicit
_IMPLICIT_FIRST = {"method", "classmethod", "property"}


class DocExtractor:
    """Extract documentation records from imported modules.

    Args:
        dialects: Enabled docstring dialects, in detection order
        private_members: Include ``_private`` names
        member_order: ``source`` keeps definition (or ``__all__``) order,
            ``alphabetical`` sorts by name
    """

    def __init__(
        self,
        dialects: Sequence[str] = DEFAULT_DIALECTS,
        private_members: bool = False,
        member_order: str = "source",
    ):
        self.dialects = tuple(dialects)
        self.private_members = private_members
        self.member_order = member_order

    def extract(self, module: ModuleType) -> ModuleDoc:
        """Extract a module and all of its public members."""
        members = []
        for name, obj in self._module_members(module):
            member = self._extract_object(obj, module.__name__, name)
            if member is not None:
                members.append(member)

        file = getattr(module, "__file__", None)
        doc = ModuleDoc(
            name=module.__name__,
            file=_path_or_none(file),
            docstring=parse_docstring(module.__doc__, self.dialects),
            members=self._ordered(members),
        )
        logger.debug(
            "extract.module",
            module=doc.name,
            members=len(doc.members),
            undocumented=sum(1 for m in doc.walk() if not m.documented),
        )
        return doc

    # ── Member discovery ─────────────────────────────────────────

    def _is_visible(self, name: str) -> bool:
        if name.startswith("__") and name.endswith("__"):
            return False
        return self.private_members or not name.startswith("_")

    def _module_members(self, module: ModuleType) -> list[tuple[str, Any]]:
        exported = getattr(module, "__all__", None)
        if exported is not None:
            return [
                (name, getattr(module, name))
                for name in exported
                if hasattr(module, name) and _is_documentable(getattr(module, name))
            ]

        return [
            (name, obj)
            for name, obj in vars(module).items()
            if self._is_visible(name)
            and _is_documentable(obj)
            and getattr(obj, "__module__", None) == module.__name__
        ]

    def _ordered(self, members: list[Member]) -> tuple[Member, ...]:
        if self.member_order == "alphabetical":
            return tuple(sorted(members, key=lambda m: m.name.lower()))
        return tuple(members)

    # ── Objects ──────────────────────────────────────────────────

    def _extract_object(self, obj: Any, module: str, qualname: str) -> Member | None:
        if inspect.isclass(obj):
            return self._extract_class(obj, module, qualname)
        if inspect.isroutine(obj):
            return self._extract_callable(obj, module, qualname, "function")
        return None

    def _extract_class(self, cls: type, module: str, qualname: str) -> Member:
        children = []
        for name, attr in vars(cls).items():
            if not self._is_visible(name):
                continue
            child_name = f"{qualname}.{name}"
            if isinstance(attr, staticmethod):
                children.append(self._extract_callable(attr.__func__, module, child_name, "staticmethod"))
            elif isinstance(attr, classmethod):
                children.append(self._extract_callable(attr.__func__, module, child_name, "classmethod"))
            elif isinstance(attr, property):
                children.append(self._extract_property(attr, module, child_name))
            elif inspect.isfunction(attr):
                children.append(self._extract_callable(attr, module, child_name, "method"))

        raw = _own_class_doc(cls)
        parameters, _, has_signature = _signature(cls, "class")
        kind = "exception" if issubclass(cls, BaseException) else "class"
        bases = tuple(
            _format_annotation(base) for base in cls.__bases__ if base is not object
        )

        return Member(
            name=qualname.rsplit(".", 1)[-1],
            qualname=qualname,
            module=module,
            kind=kind,
            parameters=parameters,
            return_annotation=None,
            docstring=parse_docstring(raw, self.dialects) if raw else EMPTY_DOCSTRING,
            documented=bool(raw),
            line_number=_line_number(cls),
            members=self._ordered(children),
            bases=bases,
            has_signature=has_signature,
        )

    def _extract_callable(self, func: Any, module: str, qualname: str, kind: str) -> Member:
        raw = _clean(getattr(func, "__doc__", None))
        parameters, return_annotation, has_signature = _signature(func, kind)
        return Member(
            name=qualname.rsplit(".", 1)[-1],
            qualname=qualname,
            module=module,
            kind=kind,
            parameters=parameters,
            return_annotation=return_annotation,
            docstring=parse_docstring(raw, self.dialects) if raw else EMPTY_DOCSTRING,
            documented=bool(raw),
            line_number=_line_number(func),
            has_signature=has_signature,
        )

    def _extract_property(self, prop: property, module: str, qualname: str) -> Member:
        raw = _clean(prop.__doc__)
        return_annotation = None
        if prop.fget is not None:
            _, return_annotation, _ = _signature(prop.fget, "property")
        return Member(
            name=qualname.rsplit(".", 1)[-1],
            qualname=qualname,
            module=module,
            kind="property",
            return_annotation=return_annotation,
            docstring=parse_docstring(raw, self.dialects) if raw else EMPTY_DOCSTRING,
            documented=bool(raw),
            line_number=_line_number(prop.fget) if prop.fget is not None else None,
            has_signature=False,
        )


# =============================================================================
# Helpers
# =============================================================================


def _is_documentable(obj: Any) -> bool:
    return inspect.isclass(obj) or inspect.isfunction(obj) or inspect.isbuiltin(obj)


def _clean(doc: str | None) -> str | None:
    if doc is None or not doc.strip():
        return None
    return doc


def _own_class_doc(cls: type) -> str | None:
    """The class's own docstring, ignoring inherited and generated ones."""
    doc = _clean(cls.__dict__.get("__doc__"))
    # dataclasses invent "Name(field: type, ...)" when there is no docstring
    if doc and dataclasses.is_dataclass(cls) and doc.startswith(f"{cls.__name__}("):
        return None
    return doc


def _signature(obj: Any, kind: str) -> tuple[tuple[Parameter, ...], str | None, bool]:
    """Parameters, return annotation and whether a signature was available."""
    try:
        sig = inspect.signature(obj)
    except (TypeError, ValueError):
        return (), None, False

    params = list(sig.parameters.values())
    if kind in _IMPLICIT_FIRST and params and params[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        params = params[1:]

    parameters = tuple(
        Parameter(
            name=p.name,
            annotation=None if p.annotation is inspect.Parameter.empty else _format_annotation(p.annotation),
            default=None if p.default is inspect.Parameter.empty else _format_default(p.default),
            kind=p.kind.name,
        )
        for p in params
    )

    return_annotation = None
    if kind != "class" and sig.return_annotation is not inspect.Signature.empty:
        return_annotation = _format_annotation(sig.return_annotation)
    return parameters, return_annotation, True


def _format_annotation(annotation: Any) -> str:
    if isinstance(annotation, str):
        return annotation
    return inspect.formatannotation(annotation)


def _format_default(value: Any) -> str:
    return _ADDRESS_RE.sub("", repr(value))


def _line_number(obj: Any) -> int | None:
    try:
        return inspect.getsourcelines(obj)[1]
    except (OSError, TypeError):
        return None


def _path_or_none(file: str | None) -> Path | None:
    return Path(file) if file else None
