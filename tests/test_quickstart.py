"""Tests for project scaffolding."""

import pytest
import yaml

from quilldoc.config import BuildConfig
from quilldoc.errors import ConfigError
from quilldoc.parser.rst import parse_document, parse_toc_entries
from quilldoc.quickstart import generate_project


class TestGenerateProject:
    """generate_project()"""

    def test_writes_config_index_and_static(self, tmp_path):
        written = generate_project(tmp_path, project="Example", author="Jane", release="0.1")
        assert written == [tmp_path / "quilldoc.yaml", tmp_path / "index.rst", tmp_path / "_static"]
        assert (tmp_path / "_static").is_dir()

    def test_config_loads_back(self, tmp_path):
        generate_project(tmp_path, project="Example", search_paths=["../src"])
        config = BuildConfig.load(tmp_path)
        assert config.project == "Example"
        assert config.search_paths == ("../src",)
        assert config.static_paths == ("_static",)

    def test_config_key_order(self, tmp_path):
        generate_project(tmp_path, project="Example")
        keys = list(yaml.safe_load((tmp_path / "quilldoc.yaml").read_text()))
        assert keys == ["project", "author", "release", "search_paths", "extensions", "theme", "static_paths"]

    def test_index_heading_fits_title(self, tmp_path):
        generate_project(tmp_path, project="文档项目", modules=["pkg.core", "pkg.util"])
        document = parse_document((tmp_path / "index.rst").read_text(encoding="utf-8"), "index")
        assert document.title == "文档项目 documentation"

        (toctree,) = document.directives("toctree")
        assert toctree.options["caption"] == "Contents"
        assert [e.target for e in parse_toc_entries(toctree)] == ["pkg.core", "pkg.util"]

    def test_refuses_to_overwrite(self, tmp_path):
        generate_project(tmp_path, project="Example")
        with pytest.raises(ConfigError, match="--force"):
            generate_project(tmp_path, project="Other")

    def test_force_overwrites(self, tmp_path):
        generate_project(tmp_path, project="Example")
        generate_project(tmp_path, project="Other", force=True)
        assert BuildConfig.load(tmp_path).project == "Other"

    def test_invalid_values_write_nothing(self, tmp_path):
        target = tmp_path / "docs"
        with pytest.raises(ConfigError):
            generate_project(target, project=None)
        assert not target.exists()
