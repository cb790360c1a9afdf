import pytest

from hireall.utils.text import (
    calculate_similarity,
    levenshtein_distance,
    normalize_company_name,
    sanitize_multiline,
    sanitize_string,
)


def test_sanitize_string_strips_tags_and_control_chars():
    assert sanitize_string("  <b>Senior</b>\x00 Engineer \n\t ") == "Senior Engineer"
    assert sanitize_string("x" * 50, max_length=10) == "x" * 10
    assert sanitize_string(None) == ""


def test_sanitize_multiline_keeps_line_breaks():
    assert sanitize_multiline("Line  one\n<i>Line</i> two\n") == "Line one\nLine two"


@pytest.mark.parametrize("raw, expected", [
    ("Acme Widgets Ltd.", "acme widgets"),
    ("  ACME WIDGETS LIMITED ", "acme widgets"),
    ("Tata Consultancy Pvt Ltd", "tata consultancy"),
    ("Smith & Sons plc", "smith sons"),
    ("", ""),
])
def test_normalize_company_name(raw, expected):
    assert normalize_company_name(raw) == expected


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_calculate_similarity():
    assert calculate_similarity("Acme", "acme") == 1.0
    assert calculate_similarity("acme", "acme widgets") == 0.9
    assert calculate_similarity("abcd", "abcf") == pytest.approx(0.75)
