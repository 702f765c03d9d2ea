"""
Project scaffolding for ``quilldoc init``.

Writes a starter ``quilldoc.yaml``, a root ``index.rst`` and an empty
``_static/`` directory.  Non-interactive: every value comes from arguments.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import yaml
from jinja2 import Environment, FileSystemLoader

from quilldoc.config import CONFIG_FILENAME, BuildConfig
from quilldoc.errors import ConfigError
from quilldoc.logging import get_logger
from quilldoc.parser.rst import column_width

logger = get_logger(__name__)

QUICKSTART_TEMPLATES = Path(__file__).parent / "templates" / "quickstart"


def generate_project(
    target: Path,
    project: str,
    author: str = "",
    release: str = "",
    search_paths: Sequence[str] = (),
    modules: Sequence[str] = (),
    force: bool = False,
) -> list[Path]:
    """Create a documentation project skeleton in ``target``.

    Args:
        target: Directory to create the project in (created if missing)
        project: Project name
        author: Author name
        release: Release string
        search_paths: Module search paths, relative to ``target``
        modules: Module names to list in the root toctree
        force: Overwrite existing files

    Returns:
        Paths written, in order

    Raises:
        ConfigError: If a file already exists and ``force`` is False, or the
            values do not form a valid configuration
    """
    target = Path(target)
    config_path = target / CONFIG_FILENAME
    index_path = target / "index.rst"

    existing = [path for path in (config_path, index_path) if path.exists()]
    if existing and not force:
        names = ", ".join(str(path) for path in existing)
        raise ConfigError(f"Refusing to overwrite existing file(s): {names} (use --force)")

    # Validate before writing anything
    config = BuildConfig.from_dict(
        {
            "source_dir": target,
            "project": project,
            "author": author,
            "release": release,
            "search_paths": list(search_paths),
            "static_paths": ["_static"],
        }
    )

    values = config.to_dict()
    data = {key: values[key] for key in _QUICKSTART_KEYS}

    env = Environment(
        loader=FileSystemLoader(str(QUICKSTART_TEMPLATES)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    heading = f"{project} documentation"
    index_text = env.get_template("index.rst.jinja").render(
        project=project,
        heading=heading,
        underline="=" * column_width(heading),
        modules=list(modules),
    )

    target.mkdir(parents=True, exist_ok=True)
    (target / "_static").mkdir(exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
    with open(index_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(index_text)

    written = [config_path, index_path, target / "_static"]
    for path in written:
        logger.info("init.created", path=str(path))
    return written


# Keys written to a new quilldoc.yaml, in this order
_QUICKSTART_KEYS = (
    "project",
    "author",
    "release",
    "search_paths",
    "extensions",
    "theme",
    "static_paths",
)
