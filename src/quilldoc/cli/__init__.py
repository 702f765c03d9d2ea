"""
CLI layer for quilldoc.

Provides a Typer application whose commands delegate to the build
pipeline (``quilldoc.orchestrator``).  This package handles only terminal
transport: argument parsing, coloured output and table formatting.

Entry point::

    quilldoc --help
"""

from quilldoc.cli.app import app

__all__ = ["app"]
