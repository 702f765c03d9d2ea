"""
Build configuration for quilldoc.

A project is configured by one flat YAML file, ``quilldoc.yaml``, next to its
root document.  The file is read once at startup and the resulting
``BuildConfig`` is immutable for the rest of the run.

Example ``quilldoc.yaml``::

    project: Example Project
    author: Jane Doe
    release: "0.1"
    search_paths:
      - ../src
    extensions:
      - autodoc
      - napoleon
    theme: quill
    static_paths:
      - _static
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from quilldoc.errors import ConfigError, InvalidConfigError, MissingConfigError

CONFIG_FILENAME = "quilldoc.yaml"

# Extension identifiers understood by the build.  "napoleon" enables both
# docstring dialects; "google" / "numpy" enable one each.
KNOWN_EXTENSIONS = ("autodoc", "napoleon", "google", "numpy")

# The one theme shipped with the package.
KNOWN_THEMES = ("quill",)


class BuildConfig(BaseModel):
    """Configuration for one documentation build.

    Attributes:
        source_dir: Directory holding ``quilldoc.yaml`` and the ``.rst`` files
        project: Project name shown in titles
        author: Author name
        release: Full version string
        copyright: Footer copyright notice (defaults to the author)
        search_paths: Directories searched, in order, for documented modules
        extensions: Enabled extensions / docstring dialects, in order
        theme: HTML theme name
        static_paths: Directories copied into ``_static/`` after the theme assets
        root_doc: Name of the root document (without suffix)
        output_dir: Where HTML is written, relative to ``source_dir``
        html_title: Browser title suffix
        private_members: Include ``_private`` members in module pages
        member_order: ``source`` (definition order) or ``alphabetical``
        last_updated_format: strftime format for the footer timestamp, or None
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_dir: Path = Field(default_factory=lambda: Path("."))
    project: str
    author: str = ""
    release: str = ""
    copyright: str | None = None
    search_paths: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ("autodoc", "napoleon")
    theme: str = "quill"
    static_paths: tuple[str, ...] = ()
    root_doc: str = "index"
    output_dir: str = "_build/html"
    html_title: str | None = None
    private_members: bool = False
    member_order: Literal["source", "alphabetical"] = "source"
    last_updated_format: str | None = "%b %d, %Y"

    @field_validator("extensions")
    @classmethod
    def _check_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [ext for ext in value if ext not in KNOWN_EXTENSIONS]
        if unknown:
            raise ValueError(
                f"unknown extension(s) {', '.join(unknown)}; "
                f"available: {', '.join(KNOWN_EXTENSIONS)}"
            )
        return value

    @field_validator("theme")
    @classmethod
    def _check_theme(cls, value: str) -> str:
        if value not in KNOWN_THEMES:
            raise ValueError(f"unknown theme {value!r}; available: {', '.join(KNOWN_THEMES)}")
        return value

    # ── Derived values ───────────────────────────────────────────

    @property
    def resolved_search_paths(self) -> list[Path]:
        """Search paths as absolute directories, in declaration order."""
        return [(self.source_dir / p).resolve() for p in self.search_paths]

    @property
    def resolved_static_paths(self) -> list[Path]:
        """Static asset directories as absolute paths, in declaration order."""
        return [(self.source_dir / p).resolve() for p in self.static_paths]

    @property
    def resolved_output_dir(self) -> Path:
        return (self.source_dir / self.output_dir).resolve()

    @property
    def title(self) -> str:
        """Title used in the browser tab, e.g. ``Example 0.1 documentation``."""
        if self.html_title:
            return self.html_title
        parts = [self.project, self.release, "documentation"]
        return " ".join(part for part in parts if part)

    @property
    def copyright_notice(self) -> str:
        return self.copyright if self.copyright is not None else self.author

    @property
    def autodoc_enabled(self) -> bool:
        return "autodoc" in self.extensions

    @property
    def dialects(self) -> tuple[str, ...]:
        """Enabled docstring dialects in the order they are tried."""
        dialects: list[str] = []
        for ext in self.extensions:
            if ext == "napoleon":
                candidates = ["numpy", "google"]
            elif ext in ("google", "numpy"):
                candidates = [ext]
            else:
                continue
            for dialect in candidates:
                if dialect not in dialects:
                    dialects.append(dialect)
        return tuple(dialects)

    # ── Loading ──────────────────────────────────────────────────

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> BuildConfig:
        """Load configuration from a YAML file.

        ``source_dir`` is set to the file's directory.

        Args:
            yaml_path: Path to ``quilldoc.yaml``

        Returns:
            BuildConfig instance

        Raises:
            MissingConfigError: If the file does not exist
            ConfigError: If the file is not valid YAML or fails validation
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.is_file():
            raise MissingConfigError(yaml_path)

        try:
            with open(yaml_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_path}: {e}", cause=e).with_context(
                file=str(yaml_path)
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidConfigError("<root>", data, "Configuration must be a mapping of keys to values")
        if "source_dir" in data:
            raise InvalidConfigError("source_dir", data["source_dir"], "source_dir is derived from the file location")

        return cls.from_dict({**data, "source_dir": yaml_path.parent.resolve()})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BuildConfig:
        """Create config from dictionary.

        Raises:
            ConfigError: If validation fails
        """
        try:
            return cls(**data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigError(f"Invalid configuration: {problems}", cause=e) from e

    @classmethod
    def load(cls, source_dir: Path) -> BuildConfig:
        """Load ``quilldoc.yaml`` from a source directory."""
        return cls.from_yaml(Path(source_dir) / CONFIG_FILENAME)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a YAML-friendly dictionary (without source_dir)."""
        data = self.model_dump(exclude={"source_dir"})
        for key in ("search_paths", "extensions", "static_paths"):
            data[key] = list(data[key])
        return data
