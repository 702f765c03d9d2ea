"""Tests for docstring dialect detection and parsing."""

import pytest

from quilldoc.parser.docstrings import detect_dialect, opaque_docstring, parse_docstring

GOOGLE = '''Example function with types documented in the Google style.

    Longer explanation of what happens.

    Args:
        param1 (int): The first parameter.
        param2 (str): The second parameter.
        param3 (float): The third parameter.
        param4 (bool): The fourth parameter.

    Returns:
        bool: True if every parameter is truthy, False otherwise.

    Raises:
        ValueError: If ``param1`` is negative.
    '''

NUMPY = '''Example function with types documented in the numpydoc style.

    Parameters
    ----------
    param1 : int
        The first parameter.
    param2 : str
        The second parameter.
    param3 : float
        The third parameter.
    param4 : bool
        The fourth parameter.

    Returns
    -------
    bool
        True if every parameter is truthy, False otherwise.
    '''


# =============================================================================
# Detection
# =============================================================================


class TestDetectDialect:
    """Section-header heuristics."""

    def test_google(self):
        assert detect_dialect("Summary.\n\nArgs:\n    x: The value.") == "google"

    def test_numpy(self):
        assert detect_dialect("Summary.\n\nParameters\n----------\nx : int\n    The value.") == "numpy"

    def test_plain_text(self):
        assert detect_dialect("Just a sentence.\n\nAnd another paragraph.") is None

    def test_disabled_dialect_not_detected(self):
        text = "Summary.\n\nArgs:\n    x: The value."
        assert detect_dialect(text, ("numpy",)) is None

    def test_first_enabled_dialect_wins(self):
        # "Parameters" with an underline and "Returns:" both present
        text = "S.\n\nParameters\n----------\nx : int\n    X.\n\nReturns:\n    int: Y."
        assert detect_dialect(text, ("numpy", "google")) == "numpy"
        assert detect_dialect(text, ("google", "numpy")) == "google"


# =============================================================================
# Parsing
# =============================================================================


class TestParseDocstring:
    """Structured sections extracted from each dialect."""

    def test_google_four_params_and_return(self):
        doc = parse_docstring(GOOGLE)
        assert doc.dialect == "google"
        assert doc.summary == "Example function with types documented in the Google style."
        assert doc.description == "Longer explanation of what happens."
        assert [p.name for p in doc.params] == ["param1", "param2", "param3", "param4"]
        assert [p.type_name for p in doc.params] == ["int", "str", "float", "bool"]
        assert doc.params[0].description == "The first parameter."
        assert doc.returns.type_name == "bool"
        assert doc.returns.description == "True if every parameter is truthy, False otherwise."
        assert [r.type_name for r in doc.raises] == ["ValueError"]

    def test_numpy_four_params_and_return(self):
        doc = parse_docstring(NUMPY)
        assert doc.dialect == "numpy"
        assert len(doc.params) == 4
        assert doc.param("param3").type_name == "float"
        assert doc.param("param4").description == "The fourth parameter."
        assert doc.returns.type_name == "bool"
        assert doc.returns.description == "True if every parameter is truthy, False otherwise."

    def test_numpy_long_underline_accepted(self):
        doc = parse_docstring("Summary.\n\nParameters\n--------------\nx : int\n    The value.\n")
        assert doc.dialect == "numpy"
        assert [p.name for p in doc.params] == ["x"]

    def test_google_attributes_kept_apart_from_params(self):
        doc = parse_docstring("A record.\n\nAttributes:\n    name (str): The name.\n")
        assert doc.params == ()
        assert [a.name for a in doc.attributes] == ["name"]

    def test_google_optional_param(self):
        doc = parse_docstring("S.\n\nArgs:\n    limit (int, optional): Maximum. Defaults to 10.\n")
        assert doc.params[0].type_name == "int"
        assert doc.params[0].is_optional is True

    def test_plain_text_is_opaque(self):
        doc = parse_docstring("Do a thing.\n\n    More details\n    on two lines.\n")
        assert doc.dialect is None
        assert doc.summary == "Do a thing."
        assert doc.description == "More details\non two lines."
        assert doc.params == ()
        assert doc.returns is None

    def test_disabled_dialect_degrades_to_opaque(self):
        doc = parse_docstring(GOOGLE, dialects=("numpy",))
        assert doc.dialect is None
        assert doc.summary == "Example function with types documented in the Google style."
        assert doc.params == ()

    @pytest.mark.parametrize("text", [None, "", "   \n  "])
    def test_empty(self, text):
        doc = parse_docstring(text)
        assert doc.is_empty
        assert doc.summary == ""


class TestOpaqueDocstring:
    """The fallback used when no dialect applies."""

    def test_summary_joins_first_paragraph(self):
        doc = opaque_docstring("First line\ncontinues here.\n\nRest.")
        assert doc.summary == "First line continues here."
        assert doc.description == "Rest."

    def test_blank(self):
        assert opaque_docstring("   ").is_empty
