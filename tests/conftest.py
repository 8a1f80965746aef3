"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import MagicMock

import pytest

from knowledge_assistant.core.domain import Document, LoadedContent, SourceDescriptor
from knowledge_assistant.core.ports import CompletionPort, ContentLoaderPort
from knowledge_assistant.core.services import DocumentStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (in-process API, no network)")


class StaticLoader(ContentLoaderPort):
    """Loader returning canned content keyed by URL. Unknown URLs raise."""

    def __init__(self, contents: dict[str, LoadedContent]):
        self.contents = contents
        self.calls: list[str] = []

    def load(self, descriptor: SourceDescriptor) -> LoadedContent:
        self.calls.append(descriptor.url)
        if descriptor.url not in self.contents:
            raise RuntimeError(f"unreachable: {descriptor.url}")
        return self.contents[descriptor.url]


@pytest.fixture
def obs_document() -> Document:
    """Curated OBS setup document with remarks keywords."""
    return Document(
        source="OBS配信設定ガイド",
        url="https://example.com/obs",
        content="OBSのインストール手順。OBSでシーンを作成し、OBSの出力設定を確認します。",
        category="配信",
        remarks="配信設定, OBS",
    )


@pytest.fixture
def build_store():
    """Factory building an initialized store from (descriptor, content) pairs."""

    def _build(entries: list[tuple[SourceDescriptor, str]]) -> DocumentStore:
        loader = StaticLoader({d.url: LoadedContent(content=text) for d, text in entries})
        store = DocumentStore(loader=loader, fetch_delay_seconds=0)
        store.rebuild([d for d, _ in entries])
        return store

    return _build


@pytest.fixture
def completion() -> MagicMock:
    """Completion port mock returning a fixed answer."""
    mock = MagicMock(spec=CompletionPort)
    mock.generate_text.return_value = "回答です"
    return mock
