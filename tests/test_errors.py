"""Tests for the quilldoc error hierarchy."""

from quilldoc.errors import (
    BrokenReference,
    BrokenReferenceError,
    ConfigError,
    ContentError,
    ErrorCategory,
    MalformedHeadingError,
    MissingConfigError,
    ModuleImportError,
    QuilldocError,
)


class TestQuilldocError:
    """Base error behaviour."""

    def test_default_category_is_internal(self):
        assert QuilldocError("boom").category == ErrorCategory.INTERNAL

    def test_with_context_is_fluent(self):
        error = ContentError("bad").with_context(docname="index", line=4, hint="x")
        assert error.context.docname == "index"
        assert error.context.line == 4
        assert error.context.metadata == {"hint": "x"}

    def test_str_prefixes_location(self):
        error = ContentError("bad").with_context(file="docs/index.rst", line=4)
        assert str(error) == "docs/index.rst:4: bad"

    def test_str_without_location(self):
        assert str(ConfigError("bad")) == "bad"

    def test_to_dict(self):
        cause = ValueError("inner")
        data = ConfigError("outer", cause=cause).with_context(file="quilldoc.yaml").to_dict()
        assert data["error_type"] == "ConfigError"
        assert data["category"] == "CONFIG"
        assert data["context"] == {"file": "quilldoc.yaml"}
        assert data["cause"] == "inner"


class TestSpecificErrors:
    """Messages and context of the concrete error types."""

    def test_missing_config_names_path(self, tmp_path):
        error = MissingConfigError(tmp_path / "quilldoc.yaml")
        assert isinstance(error, ConfigError)
        assert "quilldoc.yaml" in error.message
        assert error.context.file.endswith("quilldoc.yaml")

    def test_malformed_heading_carries_location(self):
        error = MalformedHeadingError("index.rst", 7, "Example Module", "====", 14)
        assert error.context.file == "index.rst"
        assert error.context.line == 7
        assert error.required == 14
        assert str(error).startswith("index.rst:7: Malformed heading 'Example Module'")

    def test_broken_reference_error_lists_every_reference(self):
        refs = [
            BrokenReference("missing_a", "index", 7),
            BrokenReference("pkg.missing", "usage", 3, kind="autofunction"),
        ]
        error = BrokenReferenceError(refs)
        assert error.category == ErrorCategory.REFERENCE
        assert error.references == refs
        assert "2 broken reference(s)" in error.message
        assert refs[1].describe() == (
            "usage:3: autofunction references unknown document or module 'pkg.missing'"
        )

    def test_single_broken_reference_sets_context(self):
        error = BrokenReferenceError([BrokenReference("nope", "index", 9)])
        assert error.context.location() == "index:9"
        assert error.context.reference == "nope"

    def test_module_import_error_keeps_cause(self):
        cause = ImportError("No module named 'numpy'")
        error = ModuleImportError("example_module", cause)
        assert error.category == ErrorCategory.IMPORT
        assert error.cause is cause
        assert error.__cause__ is cause
        assert "ImportError" in error.message
