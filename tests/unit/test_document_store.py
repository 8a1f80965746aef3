"""Unit tests for DocumentStore rebuilds and snapshot semantics."""

import threading
from unittest.mock import MagicMock

import pytest

from knowledge_assistant.core.domain import (
    BuildStatus,
    ImageDescriptor,
    LoadedContent,
    SearchOptions,
    SourceDescriptor,
)
from knowledge_assistant.core.domain.exceptions import (
    ContentLoadError,
    RebuildInProgressError,
    SourceListingError,
)
from knowledge_assistant.core.ports import ContentLoaderPort, ContentSourceListerPort
from knowledge_assistant.core.services import DocumentStore, KnowledgeSearchService

pytestmark = pytest.mark.unit


def _source(name: str, **fields) -> SourceDescriptor:
    return SourceDescriptor(url=f"https://example.com/{name}", file_name=name, **fields)


def _loader(mapping: dict[str, LoadedContent]) -> MagicMock:
    loader = MagicMock(spec=ContentLoaderPort)

    def load(descriptor):
        value = mapping[descriptor.file_name]
        if isinstance(value, Exception):
            raise value
        return value

    loader.load.side_effect = load
    return loader


class TestInitialState:
    def test_new_store_is_empty_and_uninitialized(self):
        store = DocumentStore(loader=MagicMock())
        assert not store.is_initialized
        assert store.query() == ()
        assert store.query_images() == ()
        assert store.last_build_time is None
        assert store.status().document_count == 0


class TestRebuild:
    def test_documents_keep_list_order_and_metadata(self):
        image = ImageDescriptor(source="notion", file_name="b", url="https://img.example.com/1.png")
        loader = _loader(
            {
                "a": LoadedContent(content="first"),
                "b": LoadedContent(content="second", images=[image]),
            }
        )
        store = DocumentStore(loader=loader, fetch_delay_seconds=0)

        result = store.rebuild([_source("a", category="配信", remarks="OBS"), _source("b")])

        assert result.status == BuildStatus.BUILT
        assert result.document_count == 2
        assert result.documents == store.query()
        assert result.image_count == 1
        assert store.is_initialized
        assert [doc.source for doc in store.query()] == ["a", "b"]
        assert store.query()[0].category == "配信"
        assert store.query()[0].remarks == "OBS"
        assert store.query_images() == (image,)

    def test_failed_source_becomes_error_document(self):
        loader = _loader(
            {
                "good": LoadedContent(content="ok"),
                "bad": ContentLoadError("404 Not Found"),
            }
        )
        store = DocumentStore(loader=loader, fetch_delay_seconds=0)

        result = store.rebuild([_source("good"), _source("bad")])

        assert result.failed_count == 1
        error_doc = store.query()[1]
        assert error_doc.is_error
        assert error_doc.content == "bad: 読み込みエラー - 404 Not Found"

    def test_pacing_delay_between_fetches(self):
        sleep = MagicMock()
        loader = _loader({name: LoadedContent(content=name) for name in "abc"})
        store = DocumentStore(loader=loader, fetch_delay_seconds=0.2, sleep=sleep)

        store.rebuild([_source(name) for name in "abc"])

        assert sleep.call_count == 2
        sleep.assert_called_with(0.2)

    def test_rebuild_replaces_the_whole_corpus(self):
        loader = _loader({"old": LoadedContent(content="old"), "new": LoadedContent(content="new")})
        store = DocumentStore(loader=loader, fetch_delay_seconds=0)
        store.rebuild([_source("old")])
        before = store.query()

        store.rebuild([_source("new")])

        assert [doc.source for doc in store.query()] == ["new"]
        # A reader holding the previous snapshot still sees it intact
        assert [doc.source for doc in before] == ["old"]

    def test_empty_source_list_keeps_documents(self):
        loader = _loader({"a": LoadedContent(content="a")})
        store = DocumentStore(loader=loader, fetch_delay_seconds=0)
        store.rebuild([_source("a")])

        result = store.rebuild([])

        assert result.status == BuildStatus.NO_SOURCES
        assert len(store.query()) == 1
        assert result.documents == store.query()
        assert store.is_initialized

    def test_empty_source_list_initializes_fresh_store(self):
        store = DocumentStore(loader=MagicMock(), fetch_delay_seconds=0)
        result = store.rebuild([])
        assert result.status == BuildStatus.NO_SOURCES
        assert store.is_initialized
        assert store.query() == ()

    def test_lister_is_used_when_no_sources_given(self):
        lister = MagicMock(spec=ContentSourceListerPort)
        lister.list_sources.return_value = [_source("a")]
        store = DocumentStore(loader=_loader({"a": LoadedContent(content="a")}), lister=lister, fetch_delay_seconds=0)

        store.rebuild()

        lister.list_sources.assert_called_once()
        assert len(store.query()) == 1

    def test_lister_failure_leaves_state_unchanged(self):
        lister = MagicMock(spec=ContentSourceListerPort)
        lister.list_sources.side_effect = OSError("sheet unavailable")
        store = DocumentStore(loader=MagicMock(), lister=lister, fetch_delay_seconds=0)

        with pytest.raises(SourceListingError):
            store.rebuild()

        assert not store.is_initialized
        assert not store.is_rebuilding

    def test_missing_lister_raises(self):
        with pytest.raises(SourceListingError):
            DocumentStore(loader=MagicMock()).rebuild()

    def test_concurrent_rebuild_is_rejected(self):
        started = threading.Event()
        release = threading.Event()

        class SlowLoader(ContentLoaderPort):
            def load(self, descriptor):
                started.set()
                release.wait(timeout=5)
                return LoadedContent(content="slow")

        store = DocumentStore(loader=SlowLoader(), fetch_delay_seconds=0)
        worker = threading.Thread(target=store.rebuild, args=([_source("a")],))
        worker.start()
        try:
            assert started.wait(timeout=5)
            assert store.is_rebuilding
            with pytest.raises(RebuildInProgressError):
                store.rebuild([_source("b")])
        finally:
            release.set()
            worker.join(timeout=5)

        assert not store.is_rebuilding
        assert [doc.source for doc in store.query()] == ["a"]

    def test_readers_keep_old_corpus_until_swap(self):
        mid_rebuild = threading.Event()
        release = threading.Event()

        class GatedLoader(ContentLoaderPort):
            def load(self, descriptor):
                if descriptor.file_name == "new-b":
                    mid_rebuild.set()
                    release.wait(timeout=5)
                return LoadedContent(content=f"{descriptor.file_name} OBS")

        store = DocumentStore(loader=GatedLoader(), fetch_delay_seconds=0)
        store.rebuild([_source("old-a"), _source("old-b")])
        old_corpus = store.query()
        search = KnowledgeSearchService(store)
        options = SearchOptions(max_results=10, min_score=0)

        worker = threading.Thread(target=store.rebuild, args=([_source("new-a"), _source("new-b")],))
        worker.start()
        try:
            assert mid_rebuild.wait(timeout=5)
            # new-a is loaded already but must not be visible yet
            assert store.query() is old_corpus
            assert {r.source for r in search.search("OBS", options)} == {"old-a", "old-b"}
            assert store.status().document_count == 2
        finally:
            release.set()
            worker.join(timeout=5)

        assert [doc.source for doc in store.query()] == ["new-a", "new-b"]
        assert {r.source for r in search.search("OBS", options)} == {"new-a", "new-b"}


class TestStatus:
    def test_status_counts(self):
        images = [
            ImageDescriptor(source="notion", file_name="a", url="https://x/1.png"),
            ImageDescriptor(source="notion", file_name="a", url="https://x/2.png"),
            ImageDescriptor(source="direct_url", file_name="b", url="https://x/3.png"),
        ]
        loader = _loader(
            {
                "a": LoadedContent(content="12345", images=images[:2]),
                "b": LoadedContent(content="678", images=images[2:]),
            }
        )
        store = DocumentStore(loader=loader, fetch_delay_seconds=0)
        store.rebuild([_source("a"), _source("b")])

        status = store.status()

        assert status.initialized
        assert status.document_count == 2
        assert status.image_count == 3
        assert status.images_by_source == {"notion": 2, "direct_url": 1}
        assert status.total_characters == 8
        assert status.to_dict()["last_build_time"] is not None

    def test_reset(self):
        store = DocumentStore(loader=_loader({"a": LoadedContent(content="a")}), fetch_delay_seconds=0)
        store.rebuild([_source("a")])
        store.reset()
        assert not store.is_initialized
        assert store.query() == ()
