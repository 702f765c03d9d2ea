"""Shared fixtures for quilldoc tests."""

import shutil
import textwrap
from pathlib import Path

import pytest
import structlog

from quilldoc.scanner import SourceScanner

FIXTURE_EPOCH = "1700000000"


@pytest.fixture(scope="session")
def fixtures_path() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_project(fixtures_path: Path, tmp_path: Path) -> Path:
    """A writable copy of the sample project."""
    target = tmp_path / "sample_project"
    shutil.copytree(
        fixtures_path / "sample_project",
        target,
        ignore=shutil.ignore_patterns("__pycache__", "_build"),
    )
    return target


@pytest.fixture
def fixed_epoch(monkeypatch: pytest.MonkeyPatch) -> str:
    """Pin the build timestamp so output is byte-for-byte reproducible."""
    monkeypatch.setenv("SOURCE_DATE_EPOCH", FIXTURE_EPOCH)
    return FIXTURE_EPOCH


@pytest.fixture
def write_module(tmp_path: Path):
    """Write a module into a private search path and import it.

    Returns a callable ``(name, source) -> module``.
    """
    search_path = tmp_path / "modules"
    search_path.mkdir()
    scanner = SourceScanner([search_path], use_sys_path=False)

    def _write(name: str, source: str):
        (search_path / f"{name}.py").write_text(textwrap.dedent(source), encoding="utf-8")
        return scanner.load(scanner.resolve(name))

    return _write


@pytest.fixture(autouse=True)
def reset_structlog():
    """CLI commands bind structlog to the runner's stderr; undo that after each test."""
    yield
    structlog.reset_defaults()
