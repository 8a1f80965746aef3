"""Mixed-script query tokenizer for Japanese and ASCII text.

Japanese has no word separators, so instead of splitting on whitespace the
query is scanned with independent script-class patterns. Every pass runs over
the original string and the union of matches becomes the token set.
"""

import re

TOKEN_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[A-Za-z0-9]+"),
    re.compile(r"[ぁ-ん]{2,}"),
    re.compile(r"[ァ-ヶー]{2,}"),
    re.compile(r"[一-龯]{2,}"),
    # Single katakana characters and uppercase letters
    re.compile(r"[ァ-ヶA-Z]"),
)


def tokenize(query: str) -> set[str]:
    """Split a query into lower-cased, de-duplicated tokens.

    Args:
        query: Raw query text.

    Returns:
        Set of tokens. Empty for an empty query.
    """
    if not query:
        return set()

    tokens: set[str] = set()
    for pattern in TOKEN_PATTERNS:
        tokens.update(match.lower() for match in pattern.findall(query))
    return tokens
