"""
Base renderer for documentation output.

Provides common functionality for renderers: Jinja2 environment setup,
template loading, build metadata and file output.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from quilldoc.config import BuildConfig
from quilldoc.errors import ConfigError, RenderError

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "html"
STATIC_DIR = Path(__file__).parent.parent / "static"


def build_timestamp() -> datetime:
    """The build time, honouring ``SOURCE_DATE_EPOCH`` for reproducible output.

    Raises:
        ConfigError: If ``SOURCE_DATE_EPOCH`` is set but not an integer or out
            of range
    """
    epoch = os.environ.get("SOURCE_DATE_EPOCH")
    if epoch:
        try:
            return datetime.fromtimestamp(int(epoch), tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise ConfigError(f"SOURCE_DATE_EPOCH must be an integer Unix timestamp, got {epoch!r}", cause=e) from e
    return datetime.now(timezone.utc)


class BaseRenderer(ABC):
    """Base class for site renderers.

    Manifesto:
        Renderers turn validated, extracted documentation into files.  They
        make no decisions about what exists: the content tree is already
        validated by the time a renderer sees it.  Templates handle markup;
        renderers handle data assembly and output.

    Architecture:
        ::

            ContentTree + ModuleDocs
                       │
                       ▼
               Renderer._page_context()
                       │
                       ▼
               Jinja2 Template (autoescaped)
                       │
                       ▼
               _write() ──► output_dir/<uri>

    Tags:
        - renderer
        - template
        - jinja2
    """

    # Template used for ordinary pages
    template_name: str = ""

    def __init__(self, config: BuildConfig, template_dir: Path | None = None):
        """Initialize the renderer.

        Args:
            config: Build configuration
            template_dir: Directory containing templates
        """
        self.config = config
        self.template_dir = Path(template_dir) if template_dir is not None else TEMPLATE_DIR

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    @abstractmethod
    def render(self, output_dir: Path) -> list[str]:
        """Render the site.

        Returns:
            URIs of the pages written, relative to ``output_dir``
        """

    def _get_template(self, template_name: str | None = None):
        """Load a Jinja2 template (``self.template_name`` if not specified)."""
        return self.env.get_template(template_name or self.template_name)

    def _get_metadata(self) -> dict[str, Any]:
        """Values shared by every page."""
        from quilldoc import __version__

        last_updated = None
        if self.config.last_updated_format:
            last_updated = build_timestamp().strftime(self.config.last_updated_format)

        return {
            "project": self.config.project,
            "title": self.config.title,
            "release": self.config.release,
            "copyright": self.config.copyright_notice,
            "last_updated": last_updated,
            "version": __version__,
            "language": "en",
        }

    def _write(self, output_dir: Path, uri: str, text: str) -> Path:
        """Write ``text`` to ``output_dir/uri`` with Unix newlines.

        Raises:
            RenderError: If the file cannot be written
        """
        path = output_dir / uri
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
        except OSError as e:
            raise RenderError(f"Cannot write {path}: {e}", cause=e).with_context(file=str(path)) from e
        return path
