"""Tests for the content tree builder."""

from pathlib import Path

import pytest

from quilldoc.config import BuildConfig
from quilldoc.errors import BrokenReferenceError, ContentError, MalformedHeadingError
from quilldoc.extractor import DocExtractor
from quilldoc.scanner import SourceScanner
from quilldoc.tree import ContentTreeBuilder


def read(project: Path):
    config = BuildConfig.load(project)
    scanner = SourceScanner(config.resolved_search_paths, use_sys_path=False)
    builder = ContentTreeBuilder(config, scanner)
    return builder, builder.read(), scanner


def build(project: Path):
    builder, content, scanner = read(project)
    scan = scanner.scan(builder.module_names(content))
    modules = {name: DocExtractor().extract(module) for name, module in scan.modules.items()}
    return content, scan, builder.build(content, scan, modules)


def edit(path: Path, old: str, new: str) -> None:
    text = path.read_text(encoding="utf-8")
    assert old in text
    path.write_text(text.replace(old, new), encoding="utf-8")


# =============================================================================
# Reading declarations
# =============================================================================


class TestRead:
    """First pass: parse the root document and its pages."""

    def test_documents_in_toctree_order(self, sample_project):
        _, content, _ = read(sample_project)
        assert list(content.documents) == ["index", "usage"]
        assert content.root.title == "Sample Project"

    def test_toctrees(self, sample_project):
        _, content, _ = read(sample_project)
        assert [t.caption for t in content.toctrees] == ["Guide", "API Reference"]
        api = content.toctrees[1]
        assert [(i.entry.target, i.docname) for i in api.items] == [
            ("example_module", None),
            ("shapes", None),
        ]

    def test_object_refs(self, sample_project):
        _, content, _ = read(sample_project)
        assert [(r.target, r.directive, r.docname, r.line) for r in content.object_refs] == [
            ("helpers.slug", "autofunction", "usage", 7),
        ]

    def test_module_names_in_reference_order(self, sample_project):
        builder, content, _ = read(sample_project)
        assert builder.module_names(content) == ["example_module", "shapes", "helpers"]

    def test_sample_project_has_no_warnings(self, sample_project):
        _, content, _ = read(sample_project)
        assert content.warnings == []

    def test_missing_root(self, sample_project):
        (sample_project / "index.rst").unlink()
        with pytest.raises(ContentError, match="Root document not found"):
            read(sample_project)

    def test_malformed_heading_in_page(self, sample_project):
        edit(sample_project / "usage.rst", "Usage\n=====", "Usage of it\n=====")
        with pytest.raises(MalformedHeadingError) as exc_info:
            read(sample_project)
        assert exc_info.value.context.file.endswith("usage.rst")
        assert exc_info.value.context.line == 1

    def test_toctree_entry_with_suffix_and_title(self, sample_project):
        edit(sample_project / "index.rst", "   usage\n", "   How to use <./usage.rst>\n")
        _, content, _ = read(sample_project)
        item = content.toctrees[0].items[0]
        assert item.docname == "usage"
        assert item.entry.title == "How to use"


class TestWarnings:
    """Problems that are reported but do not stop the build."""

    def test_orphan_document(self, sample_project):
        (sample_project / "extra.rst").write_text("Extra\n=====\n", encoding="utf-8")
        _, content, _ = read(sample_project)
        assert "extra: document isn't included in any toctree" in content.warnings

    def test_underscore_directories_are_not_orphans(self, sample_project):
        (sample_project / "_templates").mkdir()
        (sample_project / "_templates" / "page.rst").write_text("Page\n====\n", encoding="utf-8")
        _, content, _ = read(sample_project)
        assert content.warnings == []

    def test_unknown_directive(self, sample_project):
        edit(sample_project / "usage.rst", ".. note::", ".. mermaid::")
        _, content, _ = read(sample_project)
        assert any("unknown directive type 'mermaid'" in w for w in content.warnings)

    def test_root_self_reference(self, sample_project):
        edit(sample_project / "index.rst", "   usage\n", "   usage\n   index\n")
        _, content, _ = read(sample_project)
        assert any("reference to the root document" in w for w in content.warnings)
        assert [i.docname for i in content.toctrees[0].items] == ["usage"]

    def test_nested_toctree_ignored(self, sample_project):
        edit(sample_project / "usage.rst", ".. note::", ".. toctree::\n\n   index\n\n.. note::")
        _, content, _ = read(sample_project)
        assert any("toctree outside the root document is ignored" in w for w in content.warnings)

    def test_autodoc_disabled(self, sample_project):
        edit(sample_project / "quilldoc.yaml", "  - autodoc\n", "")
        builder, content, _ = read(sample_project)
        assert any("requires the 'autodoc' extension" in w for w in content.warnings)
        assert builder.module_names(content) == []


# =============================================================================
# Building the tree
# =============================================================================


class TestBuild:
    """Second pass: resolve every reference."""

    def test_tree_order_and_uris(self, sample_project):
        _, _, tree = build(sample_project)
        assert [(n.reference, n.kind, n.uri) for n in tree.nodes] == [
            ("index", "page", "index.html"),
            ("usage", "page", "usage.html"),
            ("example_module", "module", "api/example_module.html"),
            ("shapes", "module", "api/shapes.html"),
        ]
        assert [s.caption for s in tree.sections] == ["Guide", "API Reference"]

    def test_broken_references_are_all_reported(self, sample_project):
        edit(sample_project / "index.rst", "   shapes\n", "   shapes\n   missing_one\n   missing_two\n")
        edit(sample_project / "usage.rst", "helpers.slug", "helpers.nope")
        with pytest.raises(BrokenReferenceError) as exc_info:
            build(sample_project)
        refs = exc_info.value.references
        assert [(r.reference, r.docname, r.line, r.kind) for r in refs] == [
            ("missing_one", "index", 17, "toctree"),
            ("missing_two", "index", 18, "toctree"),
            ("helpers.nope", "usage", 7, "autofunction"),
        ]

    def test_unknown_module_in_auto_directive(self, sample_project):
        edit(sample_project / "usage.rst", "helpers.slug", "nowhere.slug")
        with pytest.raises(BrokenReferenceError) as exc_info:
            build(sample_project)
        assert [r.reference for r in exc_info.value.references] == ["nowhere.slug"]

    def test_import_failure_is_not_a_broken_reference(self, sample_project):
        (sample_project / "src" / "needs_dep.py").write_text(
            "import a_dependency_that_is_not_installed\n", encoding="utf-8"
        )
        edit(sample_project / "index.rst", "   shapes\n", "   shapes\n   needs_dep\n")
        _, scan, tree = build(sample_project)
        assert tree.nodes[-1].uri == "api/needs_dep.html"
        assert scan.failure_for("needs_dep").error_type == "ModuleNotFoundError"

    def test_duplicate_entry_warns_once(self, sample_project):
        edit(sample_project / "index.rst", "   shapes\n", "   shapes\n   shapes\n")
        content, _, tree = build(sample_project)
        assert [n.reference for n in tree.nodes].count("shapes") == 1
        assert any("duplicated toctree entry 'shapes'" in w for w in content.warnings)

    def test_module_entry_without_autodoc_is_broken(self, sample_project):
        edit(sample_project / "quilldoc.yaml", "  - autodoc\n", "")
        with pytest.raises(BrokenReferenceError) as exc_info:
            build(sample_project)
        assert [r.reference for r in exc_info.value.references] == ["example_module", "shapes"]

    def test_entry_title_overrides(self, sample_project):
        edit(sample_project / "index.rst", "   shapes\n", "   Shapes API <shapes>\n")
        _, _, tree = build(sample_project)
        assert tree.nodes[-1].title == "Shapes API"

    def test_entry_outside_source_dir_is_broken(self, sample_project):
        (sample_project.parent / "outside.rst").write_text("Outside\n=======\n", encoding="utf-8")
        edit(sample_project / "index.rst", "   usage\n", "   usage\n   ../outside\n")
        with pytest.raises(BrokenReferenceError) as exc_info:
            build(sample_project)
        assert [r.reference for r in exc_info.value.references] == ["../outside"]

    def test_entry_path_is_normalized(self, sample_project):
        (sample_project / "guide").mkdir()
        edit(sample_project / "index.rst", "   usage\n", "   guide/../usage\n")
        _, content, _ = read(sample_project)
        assert content.toctrees[0].items[0].docname == "usage"
        assert list(content.documents) == ["index", "usage"]


class TestGeneratedPageClash:
    """Pages that would overwrite output the renderer writes itself."""

    @pytest.fixture
    def renamed_root(self, sample_project):
        (sample_project / "index.rst").rename(sample_project / "contents.rst")
        with open(sample_project / "quilldoc.yaml", "a", encoding="utf-8") as f:
            f.write("root_doc: contents\n")
        return sample_project

    def test_page_named_index_with_other_root(self, renamed_root):
        (renamed_root / "index.rst").write_text("Intro\n=====\n\nIntro body.\n", encoding="utf-8")
        edit(renamed_root / "contents.rst", "   usage\n", "   usage\n   index\n")
        with pytest.raises(ContentError, match="would overwrite the generated page 'index.html'") as exc_info:
            build(renamed_root)
        assert exc_info.value.context.docname == "contents"
        assert exc_info.value.context.line == 11

    @pytest.mark.parametrize("name", ["search", "genindex"])
    def test_page_named_like_an_index_page(self, sample_project, name):
        (sample_project / f"{name}.rst").write_text("Page\n====\n", encoding="utf-8")
        edit(sample_project / "index.rst", "   usage\n", f"   usage\n   {name}\n")
        with pytest.raises(ContentError, match=f"'{name}.html'"):
            build(sample_project)
