"""Common text utilities for the Knowledge Assistant.

Text handling contract
----------------------
* Fetched documents, CSV cells and user input have BOM markers stripped at
  the boundary so scoring and prompts never see spurious characters.
* Unicode normalization is opt-in. NFKC folds full-width ASCII
  (ＯＢＳ -> OBS) so loaders can apply it before indexing, while prompts and
  model output keep their original form.
"""

import re
import unicodedata

BLANK_LINES_PATTERN = re.compile(r"\n\s*\n+")
SPACES_PATTERN = re.compile(r"[ \t\u3000]+")


def clean_text(text: str | None, *, normalize: bool = True) -> str:
    """Remove BOM and replacement characters and optionally NFKC-normalize.

    Args:
        text: Input text that may contain BOM or special characters.
        normalize: Whether to apply NFKC normalization. Enabled by default.

    Returns:
        Cleaned text, empty string for ``None``.
    """
    if not text:
        return ""

    cleaned = text.replace("\ufeff", "").replace("\ufffd", "")
    if normalize:
        cleaned = unicodedata.normalize("NFKC", cleaned)
    return cleaned


def collapse_whitespace(text: str) -> str:
    """Collapse runs of spaces and blank lines, keeping paragraph breaks."""
    text = SPACES_PATTERN.sub(" ", text)
    text = BLANK_LINES_PATTERN.sub("\n\n", text)
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def truncate(text: str, limit: int, marker: str = "...") -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + marker
