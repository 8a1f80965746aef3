"""Heuristic relevance scoring for knowledge documents.

The score is a plain sum of independent, non-negative signal contributions.
It is not normalized and has no upper bound. A curator keyword hit in the
remarks column outweighs everything else, so hand-tagged documents win over
documents that merely mention the query terms.
"""

import re
from dataclasses import dataclass, field

from ..domain import Document, MatchDetail


REMARKS_KEYWORD_WEIGHT = 5.0
CONTENT_FREQUENCY_WEIGHT = 0.05
CONTENT_FREQUENCY_CAP = 0.3
CONTENT_PHRASE_WEIGHT = 0.5
CATEGORY_WEIGHT = 0.3
CLASSIFICATION_WEIGHT = 0.4
FILE_NAME_TOKEN_WEIGHT = 0.2
REMARKS_PHRASE_WEIGHT = 3.0
REMARKS_TOKEN_WEIGHT = 1.0

ELLIPSIS = "..."
REMARKS_SEPARATOR = re.compile(r"[,、]")


@dataclass
class ScoredDocument:
    """Score, contributing signals and excerpt for one document."""

    score: float
    match_details: list[MatchDetail] = field(default_factory=list)
    excerpt: str = ""


def _fuzzy_contains(query_lower: str, value: str | None) -> bool:
    """True when either string contains the other (case-folded)."""
    if not query_lower or not value:
        return False
    value_lower = value.lower()
    return value_lower in query_lower or query_lower in value_lower


def _remarks_keywords(remarks: str) -> list[str]:
    return [kw.strip().lower() for kw in REMARKS_SEPARATOR.split(remarks) if kw.strip()]


class RelevanceScorer:
    """Scores a document against a query. Pure and deterministic."""

    def __init__(self, excerpt_length: int = 2000, excerpt_lead: int = 100) -> None:
        """Initialize the scorer.

        Args:
            excerpt_length: Maximum excerpt window in characters.
            excerpt_lead: Characters kept before the first token match.
        """
        self.excerpt_length = excerpt_length
        self.excerpt_lead = excerpt_lead

    def score(self, document: Document, query: str, query_tokens: set[str]) -> ScoredDocument:
        """Compute the additive relevance score of a document.

        Args:
            document: Document to score.
            query: Raw query text.
            query_tokens: Tokens produced by the tokenizer for the query.

        Returns:
            ScoredDocument with the total, the contributing signals and an excerpt.
        """
        query_lower = query.lower().strip()
        content = document.content or ""
        content_lower = content.lower()
        source_lower = (document.source or "").lower()
        remarks_lower = (document.remarks or "").lower()
        # Sorted so match details come out in a stable order
        tokens = sorted(t for t in query_tokens if t)

        details: list[MatchDetail] = []

        if remarks_lower and query_lower:
            matched = [kw for kw in _remarks_keywords(remarks_lower) if kw in query_lower]
            if matched:
                details.append(
                    MatchDetail(
                        "remarks_keyword",
                        REMARKS_KEYWORD_WEIGHT * len(matched),
                        f"remarks keyword match: {', '.join(matched)}",
                    )
                )

        for token in tokens:
            occurrences = content_lower.count(token)
            if occurrences:
                value = min(occurrences * CONTENT_FREQUENCY_WEIGHT, CONTENT_FREQUENCY_CAP)
                details.append(
                    MatchDetail("content_frequency", value, f"'{token}' x{occurrences} in content")
                )

        if query_lower and query_lower in content_lower:
            details.append(MatchDetail("content_phrase", CONTENT_PHRASE_WEIGHT, "full query in content"))

        if _fuzzy_contains(query_lower, document.category):
            details.append(
                MatchDetail("category", CATEGORY_WEIGHT, f"category match: {document.category}")
            )

        if _fuzzy_contains(query_lower, document.classification):
            details.append(
                MatchDetail(
                    "classification",
                    CLASSIFICATION_WEIGHT,
                    f"classification match: {document.classification}",
                )
            )

        for token in tokens:
            if token in source_lower:
                details.append(
                    MatchDetail("file_name", FILE_NAME_TOKEN_WEIGHT, f"'{token}' in file name")
                )

        if remarks_lower and query_lower and query_lower in remarks_lower:
            details.append(MatchDetail("remarks_phrase", REMARKS_PHRASE_WEIGHT, "full query in remarks"))

        if remarks_lower:
            for token in tokens:
                if token in remarks_lower:
                    details.append(
                        MatchDetail("remarks_token", REMARKS_TOKEN_WEIGHT, f"'{token}' in remarks")
                    )

        total = sum(detail.value for detail in details)
        return ScoredDocument(
            score=total,
            match_details=details,
            excerpt=self.extract_excerpt(content, tokens),
        )

    def extract_excerpt(self, content: str, tokens: set[str] | list[str]) -> str:
        """Cut a window of the content around the earliest token match.

        Content that fits in the window is returned unmodified.

        Args:
            content: Document text.
            tokens: Query tokens.

        Returns:
            Excerpt with ``...`` markers on clipped ends.
        """
        if len(content) <= self.excerpt_length:
            return content

        position = self._first_match(content, tokens)
        if position is None:
            return content[: self.excerpt_length] + ELLIPSIS

        start = max(0, position - self.excerpt_lead)
        end = min(len(content), start + self.excerpt_length)
        excerpt = content[start:end]
        if start > 0:
            excerpt = ELLIPSIS + excerpt
        if end < len(content):
            excerpt = excerpt + ELLIPSIS
        return excerpt

    @staticmethod
    def _first_match(content: str, tokens: set[str] | list[str]) -> int | None:
        tokens = [t for t in tokens if t]
        if not tokens:
            return None
        pattern = re.compile("|".join(re.escape(t) for t in tokens), re.IGNORECASE)
        match = pattern.search(content)
        return match.start() if match else None
