"""Tests for inline/block markup rendering and the object inventory."""

import pytest

from quilldoc.models import Member, ModuleDoc, ParsedDocstring
from quilldoc.parser.rst import Directive
from quilldoc.renderers.inventory import Inventory, InventoryEntry
from quilldoc.renderers.markup import Highlighter, MarkupRenderer, relative_uri


@pytest.fixture
def inventory() -> Inventory:
    circle = Member(
        name="Circle",
        qualname="Circle",
        module="shapes",
        kind="class",
        docstring=ParsedDocstring(summary="A circle."),
        documented=True,
        members=(Member(name="area", qualname="Circle.area", module="shapes", kind="method"),),
    )
    helper = Member(name="slug", qualname="slug", module="helpers", kind="function")
    inv = Inventory()
    inv.add_module(ModuleDoc(name="shapes", file=None, members=(circle,)), "api/shapes.html")
    inv.add_member(helper, "usage.html")
    return inv


@pytest.fixture
def renderer(inventory: Inventory) -> MarkupRenderer:
    return MarkupRenderer(
        uri="usage.html",
        inventory=inventory,
        highlighter=Highlighter(),
        pages={"index": ("index.html", "Sample Project")},
    )


class TestRelativeUri:
    """Links between pages are always relative."""

    @pytest.mark.parametrize(
        ("base", "target", "expected"),
        [
            ("index.html", "usage.html", "usage.html"),
            ("api/shapes.html", "index.html", "../index.html"),
            ("index.html", "api/shapes.html#shapes.Circle", "api/shapes.html#shapes.Circle"),
            ("api/shapes.html", "api/shapes.html#shapes.Circle", "#shapes.Circle"),
            ("api/shapes.html", "api/shapes.html", "shapes.html"),
            ("api/shapes.html", "_static/quill.css", "../_static/quill.css"),
        ],
    )
    def test_relative_uri(self, base, target, expected):
        assert relative_uri(base, target) == expected


class TestInventory:
    """Name registration and lookup."""

    def test_first_registration_wins(self, inventory: Inventory):
        duplicate = Member(name="slug", qualname="slug", module="helpers", kind="function")
        assert inventory.add_member(duplicate, "other.html") == ["helpers.slug"]
        assert inventory.get("helpers.slug").uri == "usage.html"

    def test_lookup_exact(self, inventory: Inventory):
        assert inventory.lookup("shapes.Circle").url == "api/shapes.html#shapes.Circle"

    def test_lookup_in_current_module(self, inventory: Inventory):
        assert inventory.lookup("Circle.area", current_module="shapes").fullname == "shapes.Circle.area"

    def test_lookup_unique_suffix(self, inventory: Inventory):
        assert inventory.lookup("slug()").fullname == "helpers.slug"

    def test_lookup_missing(self, inventory: Inventory):
        assert inventory.lookup("nothing") is None
        assert inventory.lookup("") is None

    def test_entry_names(self, inventory: Inventory):
        assert inventory.get("shapes.Circle.area").name == "Circle.area"
        assert inventory.get("shapes").name == "shapes"

    def test_modules_and_sorted_entries(self, inventory: Inventory):
        assert [e.fullname for e in inventory.modules()] == ["shapes"]
        assert [e.fullname for e in inventory.sorted_entries()] == [
            "shapes.Circle.area",
            "shapes.Circle",
            "shapes",
            "helpers.slug",
        ]

    def test_add_returns_false_for_duplicates(self):
        inv = Inventory()
        entry = InventoryEntry(fullname="m", kind="module", module="m", uri="api/m.html", anchor="module-m")
        assert inv.add(entry)
        assert not inv.add(entry)
        assert len(inv) == 1


class TestInline:
    """Inline markup."""

    def test_plain_text_is_escaped(self, renderer: MarkupRenderer):
        assert renderer.inline("a < b & c") == "a &lt; b &amp; c"

    def test_literal_emphasis_strong(self, renderer: MarkupRenderer):
        html = renderer.inline("``x<1>`` is *very* **bold**")
        assert '<code class="docutils literal notranslate">x&lt;1&gt;</code>' in html
        assert "<em>very</em>" in html
        assert "<strong>bold</strong>" in html

    def test_external_link(self, renderer: MarkupRenderer):
        html = renderer.inline("see `Python <https://python.org>`_")
        assert html == 'see <a class="reference external" href="https://python.org">Python</a>'

    def test_resolved_role_links_relatively(self, renderer: MarkupRenderer):
        html = renderer.inline(":class:`shapes.Circle`")
        assert 'href="api/shapes.html#shapes.Circle"' in html
        assert '<code class="xref py py-class">shapes.Circle</code>' in html

    def test_short_form_and_call_parens(self, renderer: MarkupRenderer):
        html = renderer.inline(":meth:`~shapes.Circle.area`")
        assert ">area()</code>" in html

    def test_explicit_title(self, renderer: MarkupRenderer):
        html = renderer.inline(":func:`the helper <helpers.slug>`")
        assert 'href="#helpers.slug"' in html
        assert ">the helper</code>" in html

    def test_unresolved_role_renders_code_without_link(self, renderer: MarkupRenderer):
        html = renderer.inline(":func:`nowhere.func`")
        assert html == '<code class="xref py py-func">nowhere.func()</code>'

    def test_doc_role(self, renderer: MarkupRenderer):
        assert renderer.inline(":doc:`index`") == '<a class="reference internal" href="index.html">Sample Project</a>'
        assert renderer.inline(":doc:`missing`") == "<em>missing</em>"

    def test_type_link_only_for_classes(self, renderer: MarkupRenderer):
        assert "href=" in renderer.type_link("shapes.Circle")
        assert renderer.type_link("helpers.slug") == "helpers.slug"
        assert renderer.type_link("list[int]") == "list[int]"


class TestBlocksAndDirectives:
    """Block-level rendering."""

    def test_text_renders_paragraphs_and_lists(self, renderer: MarkupRenderer):
        html = renderer.text("First paragraph.\n\n- one\n- two\n")
        assert "<p>First paragraph.</p>" in html
        assert '<ul class="simple">' in html
        assert "<li><p>one</p></li>" in html

    def test_code_block_is_highlighted(self, renderer: MarkupRenderer):
        directive = Directive(
            name="code-block", argument="python", options={}, content=("x = 1",), line=1, content_line=3
        )
        html = renderer.directive(directive)
        assert html.startswith('<div class="highlight-python notranslate">')
        assert 'class="highlight"' in html

    def test_unknown_language_falls_back_to_text(self):
        html = Highlighter().highlight("anything", "no-such-language")
        assert "anything" in html

    def test_admonition(self, renderer: MarkupRenderer):
        directive = Directive(
            name="seealso", argument="", options={}, content=("Other things.",), line=1, content_line=3
        )
        html = renderer.directive(directive)
        assert '<div class="admonition seealso">' in html
        assert '<p class="admonition-title">See also</p>' in html
        assert "<p>Other things.</p>" in html

    def test_currentmodule_changes_resolution(self, renderer: MarkupRenderer):
        directive = Directive(name="currentmodule", argument="shapes", options={}, content=(), line=1, content_line=2)
        assert renderer.directive(directive) == ""
        assert 'href="api/shapes.html#shapes.Circle"' in renderer.inline(":class:`Circle`")

    def test_stylesheet(self):
        assert ".highlight" in Highlighter().stylesheet()
