"""Unit tests for greeting detection."""

import pytest

from knowledge_assistant.core.services.greetings import detect_greeting

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "message,reply_start",
    [
        ("こんにちは！", "こんにちは"),
        ("おはようございます", "おはようございます"),
        ("お疲れ様です", "お疲れ様です"),
        ("ありがとうございました", "こちらこそ"),
        ("  よろしくお願いします", "こちらこそ"),
    ],
)
def test_leading_greetings(message, reply_start):
    assert detect_greeting(message).startswith(reply_start)


def test_new_year_matches_anywhere():
    assert detect_greeting("みなさん、あけましておめでとう").startswith("あけまして")


def test_greeting_must_lead_the_message():
    assert detect_greeting("OBSの設定、ありがとう") is None


def test_questions_are_not_greetings():
    assert detect_greeting("OBSの設定方法を教えて") is None
    assert detect_greeting("") is None
