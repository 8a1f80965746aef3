"""
Integration tests for the HTTP API.

The app runs in-process with its dependencies overridden, so no network
access or API key is needed.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from knowledge_assistant.adapters.inbound.api import deps
from knowledge_assistant.adapters.inbound.api.main import app
from knowledge_assistant.core.domain import BuildResult, BuildStatus, Document, SourceDescriptor
from knowledge_assistant.core.domain.exceptions import RebuildInProgressError
from knowledge_assistant.core.services import (
    DocumentStore,
    KnowledgeScheduler,
    KnowledgeSearchService,
    RagService,
)

pytestmark = pytest.mark.integration

OBS = SourceDescriptor(
    url="https://example.com/obs",
    file_name="OBS配信設定ガイド",
    category="配信",
    remarks="配信設定, OBS",
)
THUMBNAIL = SourceDescriptor(
    url="https://example.com/thumb",
    file_name="サムネイル作成",
    category="制作",
)


@pytest.fixture
def store(build_store) -> DocumentStore:
    return build_store(
        [
            (OBS, "OBSのインストール手順。OBSでシーンを作成し、OBSの出力設定を確認します。"),
            (THUMBNAIL, "サムネイルは文字を大きく配置します。"),
        ]
    )


@pytest.fixture
def client(store, completion):
    """Client wired to a built store and a mocked completion port."""
    search = KnowledgeSearchService(store)
    rag = RagService(store=store, search=search, completion=completion)
    scheduler = KnowledgeScheduler(store)

    app.dependency_overrides[deps.get_document_store] = lambda: store
    app.dependency_overrides[deps.get_search_service] = lambda: search
    app.dependency_overrides[deps.get_rag_service] = lambda: rag
    app.dependency_overrides[deps.get_scheduler] = lambda: scheduler
    # No context manager: the lifespan (startup rebuild, scheduler) stays off
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def empty_client(completion):
    """Client wired to a store that has never been built."""
    store = DocumentStore(loader=MagicMock(), fetch_delay_seconds=0)
    search = KnowledgeSearchService(store)
    rag = RagService(store=store, search=search, completion=completion)

    app.dependency_overrides[deps.get_document_store] = lambda: store
    app.dependency_overrides[deps.get_search_service] = lambda: search
    app.dependency_overrides[deps.get_rag_service] = lambda: rag
    app.dependency_overrides[deps.get_scheduler] = lambda: KnowledgeScheduler(store)
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_after_build(self, client):
        body = client.get("/ready").json()
        assert body["status"] == "ready"
        assert body["knowledge_base"]["document_count"] == 2
        assert body["scheduler"]["running"] is False

    def test_initializing_before_build(self, empty_client):
        response = empty_client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "initializing"


class TestAsk:
    def test_lenient_answer(self, client, completion):
        response = client.post("/api/v1/ask", json={"question": "OBSの設定方法を教えて"})

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "回答です"
        assert body["error_code"] is None
        assert body["metadata"]["rag_used"] is True
        assert "OBS配信設定ガイド" in body["metadata"]["sources"]
        completion.generate_text.assert_called_once()

    def test_not_initialized_returns_apology(self, empty_client, completion):
        response = empty_client.post("/api/v1/ask", json={"question": "OBSの設定方法"})

        assert response.status_code == 200
        body = response.json()
        assert body["error_code"] == "KA_KB_002"
        assert body["answer"]
        completion.generate_text.assert_not_called()

    def test_blank_question_is_rejected(self, client):
        response = client.post("/api/v1/ask", json={"question": "   "})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "KA_VAL_002"

    def test_unknown_mode_fails_validation(self, client):
        response = client.post("/api/v1/ask", json={"question": "OBS", "mode": "creative"})
        assert response.status_code == 422


class TestSearch:
    def test_ranked_results(self, client):
        response = client.post("/api/v1/search", json={"query": "OBS", "min_score": 0.1})

        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["source"] == "OBS配信設定ガイド"
        assert results[0]["match_details"]
        assert results[0]["metadata"]["category"] == "配信"

    def test_category_filter(self, client):
        response = client.post(
            "/api/v1/search",
            json={"query": "OBS サムネイル", "min_score": 0, "filters": {"category": "制作"}},
        )

        sources = [r["source"] for r in response.json()["results"]]
        assert sources == ["サムネイル作成"]

    def test_not_initialized(self, empty_client):
        response = empty_client.post("/api/v1/search", json={"query": "OBS"})

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "KA_KB_002"


class TestAdmin:
    def test_rebuild(self, client):
        store = MagicMock(spec=DocumentStore)
        store.rebuild.return_value = BuildResult(
            status=BuildStatus.BUILT,
            documents=tuple(Document(source=f"doc{i}", url=f"https://example.com/{i}", content="") for i in range(3)),
            failed_count=1,
        )
        app.dependency_overrides[deps.get_document_store] = lambda: store

        response = client.post("/api/v1/admin/rebuild")

        assert response.status_code == 200
        assert response.json()["status"] == "built"
        assert response.json()["documents"] == 3
        assert response.json()["failed_count"] == 1

    def test_rebuild_in_progress(self, client):
        store = MagicMock(spec=DocumentStore)
        store.rebuild.side_effect = RebuildInProgressError("A knowledge base rebuild is already running")
        app.dependency_overrides[deps.get_document_store] = lambda: store

        response = client.post("/api/v1/admin/rebuild")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "KA_KB_003"
