import pytest

from legaliz.services.text import clean_fields, strip_markup


@pytest.mark.parametrize("raw,expected", [
    ("<b>Estate</b> of <i>John</i> Smith", "Estate of John Smith"),
    ("<p>Probate</p>\n", "Probate"),
    ("Hearing <!-- internal note --> moved", "Hearing  moved"),
    ("<script>alert(1)</script>Lease", "Lease"),
    ("Claim value < 10000 USD", "Claim value < 10000 USD"),
    ("a < b > c", "a < b > c"),
    ("x<5", "x<5"),
    ("Smith & Sons", "Smith & Sons"),
    ("   ", ""),
])
def test_strip_markup(raw, expected):
    assert strip_markup(raw) == expected


def test_none_stays_none():
    assert strip_markup(None) is None


def test_clean_fields_only_touches_named_fields():
    out = clean_fields({"name": "<b>Acme</b>", "user_id": 3}, ("name", "email"))
    assert out == {"name": "Acme", "user_id": 3}
