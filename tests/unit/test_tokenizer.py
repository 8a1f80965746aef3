"""Unit tests for the mixed-script tokenizer."""

import pytest

from knowledge_assistant.core.services.tokenizer import tokenize

pytestmark = pytest.mark.unit


def test_empty_query_has_no_tokens():
    assert tokenize("") == set()


def test_ascii_runs_are_lowercased():
    tokens = tokenize("OBS設定について教えて")
    assert "obs" in tokens
    assert "設定" in tokens


def test_script_classes_are_scanned_independently():
    tokens = tokenize("配信のコツをおしえて")
    assert "配信" in tokens  # kanji run
    assert "コツ" in tokens  # katakana run
    assert "をおしえて" in tokens  # hiragana run


def test_single_katakana_and_uppercase_letters_are_tokens():
    tokens = tokenize("Vのア")
    assert "v" in tokens
    assert "ア" in tokens


def test_single_hiragana_and_kanji_are_not_tokens():
    assert tokenize("の") == set()
    assert tokenize("字") == set()


def test_tokens_are_deduplicated():
    tokens = tokenize("obs OBS Obs")
    assert tokens == {"obs", "o", "b", "s"}


def test_tokenize_is_pure():
    assert tokenize("OBSの設定") == tokenize("OBSの設定")
