"""Search query optimization for conversational Japanese input.

Students phrase submissions as sentences ("レッスン3のミッションについて教えて").
Stripping filler words and the lesson reference leaves the terms that
actually appear in the knowledge documents.
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

STOPWORDS = (
    "について", "教えて", "ください", "どうすれば", "どうやって",
    "どのように", "ですか", "でしょうか", "なんですか", "とは",
    "を知りたい", "を教えて", "したい", "したいです", "です",
    "ます", "ですか?", "でしょうか?", "ありますか", "ありますか?",
    "なに", "何", "いつ", "誰", "どこ", "なぜ", "の方法",
    "方法を", "やり方", "コツ", "ポイント", "を", "は", "が", "の",
)  # fmt: skip

LESSON_PATTERN = re.compile(r"レッスン(\d+)")
LESSON_STRIP_PATTERN = re.compile(r"レッスン\d+の?")
PUNCTUATION_PATTERN = re.compile(r"[？?！!。、，,]")
KEYWORD_PATTERN = re.compile(r"[ァ-ヶー]+|[一-龯]+|[ぁ-ん]{2,}")
WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass
class OptimizedQuery:
    """Result of query optimization."""

    query: str
    lesson_number: str | None
    original_query: str


def extract_keywords(text: str, limit: int = 3) -> str:
    """Join the longest katakana, kanji and hiragana runs of a text.

    Falls back to the text itself when it has no such runs.
    """
    keywords = KEYWORD_PATTERN.findall(text)
    keywords.sort(key=len, reverse=True)
    return " ".join(keywords[:limit]) or text


def optimize_query(query: str) -> OptimizedQuery:
    """Reduce a conversational query to search terms.

    Args:
        query: Raw user input.

    Returns:
        OptimizedQuery with the search terms and any lesson number found.
    """
    optimized = query
    lesson_number = None

    lesson_match = LESSON_PATTERN.search(query)
    if lesson_match:
        lesson_number = lesson_match.group(1)
        optimized = LESSON_STRIP_PATTERN.sub("", optimized).strip()

    for word in STOPWORDS:
        escaped = re.escape(word)
        optimized = re.sub(escaped + "$", "", optimized).strip()
        if len(word) >= 2:
            optimized = re.sub(r"\s+" + escaped + r"\s+", " ", optimized).strip()

    optimized = WHITESPACE_PATTERN.sub(" ", optimized).strip()
    optimized = PUNCTUATION_PATTERN.sub("", optimized).strip()

    if len(optimized) < 2:
        if lesson_number and "ミッション" in query:
            optimized = "ミッション"
        else:
            optimized = extract_keywords(query)

    logger.debug(f"Optimized query '{query}' -> '{optimized}' (lesson {lesson_number})")
    return OptimizedQuery(query=optimized, lesson_number=lesson_number, original_query=query)
