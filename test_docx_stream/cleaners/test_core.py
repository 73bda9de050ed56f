import pytest

from docx_stream.cleaners import core


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("ITEM 1.     BUSINESS", "ITEM 1. BUSINESS"),
        ("ITEM 1.\n\t  BUSINESS", "ITEM 1. BUSINESS"),
        ("  leading and trailing  ", "leading and trailing"),
        ("non\xa0breaking", "non breaking"),
        ("one\ntwo", "one two"),
        ("", ""),
        (" \n\t ", ""),
    ],
)
def test_clean_extra_whitespace(text: str, expected: str):
    assert core.clean_extra_whitespace(text) == expected


@pytest.mark.parametrize(
    ("normalize_whitespace", "expected"),
    [(True, "a b"), (False, "  a \n b ")],
)
def test_normalize_text(normalize_whitespace: bool, expected: str):
    assert core.normalize_text("  a \n b ", normalize_whitespace) == expected
