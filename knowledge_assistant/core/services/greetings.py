"""Greeting detection for fixed replies that skip retrieval."""

import logging
import re

logger = logging.getLogger(__name__)

GREETING_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(こんにちは|こんにちわ)"), "こんにちは！お世話になっております。"),
    (re.compile(r"^(おはよう)"), "おはようございます！本日もよろしくお願いいたします。"),
    (re.compile(r"^(こんばんは|こんばんわ)"), "こんばんは！お疲れ様です。"),
    (re.compile(r"^(お疲れ|おつかれ)"), "お疲れ様です！お世話になっております。"),
    (re.compile(r"^(ありがとう|感謝)"), "こちらこそ、ありがとうございます！"),
    (re.compile(r"^(すみません|申し訳|ごめん)"), "いえいえ、とんでもございません！"),
    (re.compile(r"^(よろしく)"), "こちらこそ、どうぞよろしくお願いいたします！"),
    # Matches anywhere in the message
    (re.compile(r"あけまして|新年|今年も"), "あけましておめでとうございます！今年もよろしくお願いいたします。"),
)


def detect_greeting(query: str) -> str | None:
    """Return the fixed reply for a greeting, or None if the query is not one."""
    text = (query or "").strip()
    for pattern, reply in GREETING_PATTERNS:
        if pattern.search(text):
            logger.info(f"Greeting detected: '{text[:30]}'")
            return reply
    return None
