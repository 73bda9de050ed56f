import re

_WHITESPACE_RE = re.compile(r"\s+")


def clean_extra_whitespace(text: str) -> str:
    """Collapses every run of whitespace characters to a single space and trims both ends.

    Line-feeds, tabs and non-breaking spaces count as whitespace too, so a multi-paragraph cell
    comes out as one line.

    Example
    -------
    ITEM 1.\n\t  BUSINESS  -> ITEM 1. BUSINESS
    """
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_text(text: str, normalize_whitespace: bool) -> str:
    """`text` cleaned of extra whitespace when `normalize_whitespace` is True, else unchanged."""
    return clean_extra_whitespace(text) if normalize_whitespace else text
