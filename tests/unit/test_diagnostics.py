"""
Unit tests for typecomb error reporting and diagnostics helpers.
"""

import pytest

from typecomb.utils.diagnostics import (
    ErrorCode,
    levenshtein_distance,
    suggest_similar,
)
from typecomb.utils.errors import (
    SourceLocation,
    TypecombError,
    UnresolvedRecursionError,
    UnresolvedTypeError,
    UnsupportedConstructError,
)


class TestLevenshtein:
    """Tests for edit distance."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("Person", "Person", 0),
            ("Person", "Persn", 1),
            ("kitten", "sitting", 3),
        ],
    )
    def test_distance(self, a, b, expected):
        """Test known distances."""
        assert levenshtein_distance(a, b) == expected
        assert levenshtein_distance(b, a) == expected


class TestSuggestSimilar:
    """Tests for "did you mean" suggestions."""

    def test_closest_first(self):
        """Test suggestions are ordered by distance."""
        assert suggest_similar("Persn", ["Point", "Persons", "Person"]) == ["Person", "Persons"]

    def test_case_insensitive(self):
        """Test case differences count as close."""
        assert suggest_similar("person", ["Person"]) == ["Person"]

    def test_exact_match_excluded(self):
        """Test the name itself is never suggested."""
        assert suggest_similar("Person", ["Person"]) == []

    def test_limit(self):
        """Test the suggestion count limit."""
        assert len(suggest_similar("ab", ["aa", "ac", "ad", "ae"], max_suggestions=2)) == 2

    def test_no_candidates(self):
        """Test an empty candidate list."""
        assert suggest_similar("Person", []) == []


class TestErrors:
    """Tests for compiler error formatting."""

    def test_location_format(self):
        """Test locations with and without a filename."""
        assert str(SourceLocation(3, 5, "models.py")) == "models.py:3:5"
        assert str(SourceLocation(3, 5)) == "3:5"

    def test_message_with_code_and_location(self):
        """Test the formatted message carries location and code."""
        error = UnsupportedConstructError("'3'", SourceLocation(2, 10, "m.py"))
        assert str(error) == "[m.py:2:10] error[E0103]: unsupported type construct: '3'"

    def test_with_source_adds_caret(self):
        """Test attaching the source line points at the column."""
        error = UnresolvedTypeError("Persn", SourceLocation(2, 10, "m.py"))
        error.with_source(["import os", "def f(p: Persn):"])
        lines = str(error).splitlines()
        assert lines[1] == "    def f(p: Persn):"
        assert lines[2].index("^") == 4 + 9

    def test_with_source_out_of_range(self):
        """Test a location past the end leaves the message alone."""
        error = UnresolvedRecursionError("Tree", SourceLocation(9, 1))
        before = str(error)
        error.with_source(["x = 1"])
        assert str(error) == before

    def test_codes_are_catalogued(self):
        """Test every error class uses a distinct catalogued code."""
        catalogued = {v for k, v in vars(ErrorCode).items() if k.startswith("E")}
        codes = [
            error_class.code
            for error_class in (UnresolvedTypeError, UnresolvedRecursionError, UnsupportedConstructError)
        ]
        assert set(codes) <= catalogued
        assert len(set(codes)) == len(codes)

    def test_base_class(self):
        """Test every compiler error derives from TypecombError."""
        error = UnresolvedRecursionError("Tree")
        assert isinstance(error, TypecombError)
        assert error.code == ErrorCode.E0102
        assert "'# recursive'" in error.message
