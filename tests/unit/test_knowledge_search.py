"""Unit tests for KnowledgeSearchService ranking, thresholds and filters."""

from unittest.mock import MagicMock

import pytest

from knowledge_assistant.core.domain import Document, SearchFilters, SearchOptions, SourceDescriptor
from knowledge_assistant.core.services import DocumentStore, KnowledgeSearchService
from knowledge_assistant.core.services.relevance_scorer import ScoredDocument

pytestmark = pytest.mark.unit


def _source(name: str, **fields) -> SourceDescriptor:
    return SourceDescriptor(url=f"https://example.com/{name}", file_name=name, **fields)


class FixedScorer:
    """Scores documents from a table keyed by source name."""

    def __init__(self, scores: dict[str, float]):
        self.scores = scores

    def score(self, document: Document, query: str, query_tokens: set[str]) -> ScoredDocument:
        return ScoredDocument(score=self.scores[document.source], excerpt=document.content)


class TestSearch:
    def test_obs_scenario_ranks_curated_document_first(self, build_store):
        store = build_store(
            [
                (_source("雑談配信のコツ", category="配信"), "雑談の話題を準備しましょう。"),
                (
                    _source("OBS配信設定ガイド", remarks="配信設定, OBS"),
                    "OBSのインストール。OBSでシーン作成。OBSの出力設定。",
                ),
            ]
        )
        search = KnowledgeSearchService(store)

        results = search.search("OBS設定について教えて", SearchOptions(max_results=5, min_score=5.15))

        assert results
        assert results[0].source == "OBS配信設定ガイド"
        assert results[0].score >= 5.15
        assert results[0].metadata["remarks"] == "配信設定, OBS"

    def test_uninitialized_store_returns_nothing(self):
        store = DocumentStore(loader=MagicMock())
        assert KnowledgeSearchService(store).search("OBS") == []

    def test_empty_corpus_returns_nothing(self, build_store):
        store = build_store([])
        assert store.is_initialized
        assert KnowledgeSearchService(store).search("OBS") == []

    def test_threshold_is_inclusive(self, build_store):
        store = build_store([(_source("a"), "a"), (_source("b"), "b")])
        search = KnowledgeSearchService(store, FixedScorer({"a": 0.5, "b": 0.49}))

        results = search.search("q", SearchOptions(min_score=0.5))

        assert [r.source for r in results] == ["a"]

    def test_ties_keep_store_order(self, build_store):
        names = ["first", "second", "third"]
        store = build_store([(_source(name), name) for name in names])
        search = KnowledgeSearchService(store, FixedScorer({name: 1.0 for name in names}))

        results = search.search("q", SearchOptions(min_score=0))

        assert [r.source for r in results] == names

    def test_sorted_descending_and_truncated(self, build_store):
        scores = {"a": 0.2, "b": 0.9, "c": 0.5, "d": 0.7}
        store = build_store([(_source(name), name) for name in scores])
        search = KnowledgeSearchService(store, FixedScorer(scores))

        results = search.search("q", SearchOptions(max_results=2, min_score=0))

        assert [r.source for r in results] == ["b", "d"]

    def test_top_k_raises_the_cap(self, build_store):
        scores = {"a": 0.4, "b": 0.3, "c": 0.2}
        store = build_store([(_source(name), name) for name in scores])
        search = KnowledgeSearchService(store, FixedScorer(scores))

        results = search.search("q", SearchOptions(max_results=1, top_k=3, min_score=0))

        assert len(results) == 3

    def test_filters_apply_before_scoring(self, build_store):
        store = build_store(
            [
                (_source("mission", classification="ミッション", good_bad_example="良い例"), "x"),
                (_source("guide", classification="資料"), "x"),
            ]
        )
        search = KnowledgeSearchService(store, FixedScorer({"mission": 1.0, "guide": 2.0}))

        results = search.search(
            "q",
            SearchOptions(min_score=0, filters=SearchFilters(classification="ミッション", good_bad_example="良い例")),
        )

        assert [r.source for r in results] == ["mission"]

    def test_remarks_keyword_filter(self, build_store):
        store = build_store([(_source("a", remarks="OBS, 配信"), "x"), (_source("b", remarks="サムネ"), "x")])
        search = KnowledgeSearchService(store, FixedScorer({"a": 1.0, "b": 1.0}))

        results = search.search("q", SearchOptions(min_score=0, filters=SearchFilters(remarks_keyword="OBS")))

        assert [r.source for r in results] == ["a"]

    def test_scorer_failure_returns_empty_list(self, build_store):
        store = build_store([(_source("a"), "a")])
        scorer = MagicMock()
        scorer.score.side_effect = RuntimeError("boom")

        assert KnowledgeSearchService(store, scorer).search("q") == []
