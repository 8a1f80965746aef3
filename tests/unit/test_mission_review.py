"""Unit tests for mission submission review."""

from unittest.mock import MagicMock

import pytest

from knowledge_assistant.core.domain import AnswerMode, Document, SearchResult
from knowledge_assistant.core.services import MissionReviewService
from knowledge_assistant.core.services.mission_review import detect_pass_fail

pytestmark = pytest.mark.unit


def _mission(name: str, example: str | None = None, score: float = 1.0, **fields) -> SearchResult:
    doc = Document(
        source=name,
        url=f"https://example.com/{name}",
        content=fields.pop("content", f"{name}の内容"),
        classification=fields.pop("classification", "ミッション"),
        category=fields.pop("category", "自己紹介"),
        good_bad_example=example,
        **fields,
    )
    return SearchResult(document=doc, score=score, excerpt=doc.content)


@pytest.fixture
def search():
    return MagicMock()


class TestDetectPassFail:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("🎯 判定結果: 【✅ 合格】", True),
            ("🎯 判定結果: 【❌ 不合格（要修正）】", False),
            ("素晴らしい自己紹介です", True),
            ("素晴らしいですが再提出をお願いします", False),
            ("コメントのみ", False),
        ],
    )
    def test_verdicts(self, text, expected):
        assert detect_pass_fail(text) is expected


class TestReview:
    def test_no_mission_documents_skips_model(self, search, completion):
        guide = _mission("配信ガイド", classification="資料")
        search.search.return_value = [guide]

        answer = MissionReviewService(search, completion).review("レッスン3のミッションについて教えて")

        assert answer.metadata.refused
        assert answer.metadata.mode == AnswerMode.MISSION
        assert "検索結果: 1件" in answer.text
        assert "ミッション分類: 0件" in answer.text
        completion.generate_text.assert_not_called()

    def test_search_uses_optimized_query_and_low_threshold(self, search, completion):
        search.search.return_value = []

        MissionReviewService(search, completion).review("OBSの設定方法を教えて")

        query, options = search.search.call_args.args
        assert query == "OBSの設定"
        assert options.max_results == 50
        assert options.min_score == 0.005

    def test_lesson_documents_preferred(self, search, completion):
        completion.generate_text.return_value = "✅ 合格 よくできました"
        search.search.return_value = [
            _mission("レッスン2ミッション", "良い例"),
            _mission("レッスン3ミッション良い例", "良い例", category="サムネイル"),
            _mission("レッスン3ミッション悪い例", "悪い例", category="サムネイル"),
        ]

        answer = MissionReviewService(search, completion).review("レッスン3のミッション提出です")

        assert answer.metadata.sources == ["レッスン3ミッション良い例", "レッスン3ミッション悪い例"]
        assert answer.metadata.extra["lesson_number"] == "3"
        assert answer.metadata.extra["passed"] is True
        assert answer.metadata.chunks_used == 2

        system_prompt = completion.generate_text.call_args.args[0]
        assert "サムネイル" in system_prompt
        assert "良い例の特徴" in system_prompt
        assert "悪い例（避けるべきポイント）" in system_prompt
        assert "レッスン2ミッション" not in system_prompt
        assert completion.generate_text.call_args.kwargs["temperature"] == 0.7

    def test_all_missions_used_when_lesson_has_none(self, search, completion):
        completion.generate_text.return_value = "❌ 不合格（要修正）"
        search.search.return_value = [_mission("ミッション良い例", "良い例")]

        answer = MissionReviewService(search, completion).review("レッスン9のミッションです")

        assert answer.metadata.sources == ["ミッション良い例"]
        assert answer.metadata.extra["passed"] is False

    def test_examples_are_capped(self, search, completion):
        search.search.return_value = [_mission(f"良い例{i}", "良い例", content="あ" * 2000) for i in range(8)]

        MissionReviewService(search, completion, examples_per_kind=5, example_length=800).review("ミッション提出")

        system_prompt = completion.generate_text.call_args.args[0]
        assert "5. 良い例4" in system_prompt
        assert "良い例5" not in system_prompt
        assert "あ" * 801 not in system_prompt

    def test_attached_images_are_mentioned(self, search, completion):
        search.search.return_value = [_mission("ミッション良い例", "良い例")]

        answer = MissionReviewService(search, completion).review(
            "ミッション提出", images=["https://cdn.discordapp.com/attachments/1/art.png"]
        )

        assert "1枚の画像" in completion.generate_text.call_args.args[0]
        assert answer.metadata.user_images_used == 1
