"""
Source scanner - resolve and import documented modules.

Resolves module names against an ordered list of search paths and imports
them so the extractor can introspect their members.

Manifesto:
    Documentation is extracted from the code that actually runs, so modules
    are imported, not just parsed.  Importing user code can fail for reasons
    that have nothing to do with the documentation (a missing optional
    dependency, a syntax error in a work-in-progress file).  One broken module
    must never take the rest of the site down with it.

Architecture:
    ::

        module names (ordered, de-duplicated)
              │
              ▼
        resolve() ── PathFinder over search paths, first match wins
              │            (no user code executed)
              ├──► None ──────────────► unresolved
              │
              ▼
        load() ── import with search paths first on sys.path
              │
              ├──► ModuleType ────────► modules
              └──► ModuleImportError ─► failures (non-fatal)

Features:
    - First-match-wins resolution across search paths
    - Falls back to the interpreter's sys.path for installed packages
    - Dotted names resolved part by part without running code
    - Fresh import on every build; sys.path and sys.modules restored afterwards

Guardrails:
    - Do NOT abort the scan when one module fails to import
      ✅ Record an ImportFailure and continue
    - Do NOT leave user modules cached in sys.modules
      ✅ A rebuild must see the code on disk, not a stale import

Tags:
    scanner, importlib, module-resolution, quilldoc
"""

from __future__ import annotations

import importlib
import sys
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from importlib.machinery import ModuleSpec, PathFinder
from pathlib import Path
from types import ModuleType

from quilldoc.errors import ModuleImportError
from quilldoc.logging import get_logger
from quilldoc.models import ImportFailure, ModuleLocation

logger = get_logger(__name__)


@dataclass
class ScanResult:
    """Outcome of scanning a list of module names.

    Attributes:
        modules: Successfully imported modules, in scan order
        locations: Every module name that resolved, loaded or not
        failures: Modules that resolved but failed to import
        unresolved: Names not found on any search path
    """

    modules: dict[str, ModuleType] = field(default_factory=dict)
    locations: dict[str, ModuleLocation] = field(default_factory=dict)
    failures: list[ImportFailure] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)

    def is_resolved(self, name: str) -> bool:
        return name in self.locations

    def failure_for(self, name: str) -> ImportFailure | None:
        for failure in self.failures:
            if failure.module == name:
                return failure
        return None


class SourceScanner:
    """Resolve module names on search paths and import them.

    Examples:
        >>> scanner = SourceScanner([Path("src")])
        >>> result = scanner.scan(["example_module", "missing"])
        >>> result.unresolved
        ['missing']
    """

    def __init__(self, search_paths: Sequence[Path], *, use_sys_path: bool = True):
        """Initialize the scanner.

        Args:
            search_paths: Directories searched in order; first match wins
            use_sys_path: Also consult the interpreter's sys.path, after the
                configured search paths
        """
        self.search_paths = [Path(p) for p in search_paths]
        self.use_sys_path = use_sys_path

    # ── Resolution ───────────────────────────────────────────────

    def resolve(self, name: str) -> ModuleLocation | None:
        """Find where ``name`` lives without importing it.

        Args:
            name: Dotted module name

        Returns:
            ModuleLocation, or None when no search path provides the module
        """
        parts = name.split(".")
        if not name or not all(part.isidentifier() for part in parts):
            return None

        spec, search_path = self._find_top_level(parts[0])
        for index in range(1, len(parts)):
            if spec is None or spec.submodule_search_locations is None:
                return None
            spec = PathFinder.find_spec(
                ".".join(parts[: index + 1]), list(spec.submodule_search_locations)
            )

        if spec is None:
            return None

        origin = Path(spec.origin) if spec.origin and spec.has_location else None
        return ModuleLocation(
            name=name,
            origin=origin,
            search_path=search_path,
            is_package=spec.submodule_search_locations is not None,
        )

    def split_target(self, target: str) -> tuple[str, str] | None:
        """Split an object path into its module and the qualified name inside it.

        The longest dotted prefix that resolves to a module wins, so
        ``pkg.mod.Class.method`` gives ``("pkg.mod", "Class.method")``.

        Returns:
            ``(module, qualname)``, or None when no prefix is a module
        """
        parts = target.split(".")
        for index in range(len(parts) - 1, 0, -1):
            module = ".".join(parts[:index])
            if self.resolve(module) is not None:
                return module, ".".join(parts[index:])
        return None

    def _find_top_level(self, top: str) -> tuple[ModuleSpec | None, Path | None]:
        for search_path in self.search_paths:
            spec = PathFinder.find_spec(top, [str(search_path)])
            if spec is not None:
                return spec, search_path
        if self.use_sys_path:
            return PathFinder.find_spec(top, sys.path), None
        return None, None

    # ── Loading ──────────────────────────────────────────────────

    def load(self, location: ModuleLocation) -> ModuleType:
        """Import a resolved module.

        Args:
            location: Result of :meth:`resolve`

        Returns:
            The imported module object

        Raises:
            ModuleImportError: If importing raises anything (missing
                dependency, syntax error, error at import time)
        """
        with self._import_environment(location):
            try:
                return importlib.import_module(location.name)
            except (Exception, SystemExit) as e:
                raise ModuleImportError(location.name, e) from e

    @contextmanager
    def _import_environment(self, location: ModuleLocation) -> Iterator[None]:
        """Put the search paths first on sys.path and isolate sys.modules.

        Modules that come from a configured search path are always imported
        fresh: any cached module of the same top-level name is set aside for
        the duration of the import and restored afterwards.
        """
        saved_path = list(sys.path)
        top = location.name.split(".")[0]
        isolate = location.search_path is not None

        shadowed: dict[str, ModuleType] = {}
        if isolate:
            shadowed = {name: sys.modules[name] for name in _family(top, sys.modules)}
            for name in shadowed:
                del sys.modules[name]

        sys.path[:0] = [str(p) for p in self.search_paths]
        importlib.invalidate_caches()
        try:
            yield
        finally:
            sys.path[:] = saved_path
            if isolate:
                for name in _family(top, sys.modules):
                    del sys.modules[name]
                sys.modules.update(shadowed)

    # ── Scanning ─────────────────────────────────────────────────

    def scan(self, names: Iterable[str]) -> ScanResult:
        """Resolve and load every module name, in order.

        Duplicate names are scanned once.  Import failures are collected,
        never raised.

        Args:
            names: Module names, in the order they should be processed

        Returns:
            ScanResult with loaded modules, failures and unresolved names
        """
        result = ScanResult()
        importlib.invalidate_caches()

        for name in dict.fromkeys(names):
            location = self.resolve(name)
            if location is None:
                logger.warning("scan.module_not_found", module=name)
                result.unresolved.append(name)
                continue

            result.locations[name] = location
            try:
                module = self.load(location)
            except ModuleImportError as e:
                cause = e.cause
                failure = ImportFailure(
                    module=name,
                    error_type=type(cause).__name__,
                    message=str(cause),
                    location=location,
                )
                logger.warning("scan.import_failed", module=name, error=failure.describe())
                result.failures.append(failure)
                continue

            logger.info(
                "scan.module_loaded",
                module=name,
                origin=str(location.origin) if location.origin else None,
            )
            result.modules[name] = module

        return result


def _family(top: str, modules: Iterable[str]) -> list[str]:
    """Names in ``modules`` that are ``top`` or one of its submodules."""
    prefix = top + "."
    return [name for name in list(modules) if name == top or name.startswith(prefix)]
