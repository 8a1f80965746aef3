"""Unit tests for log formatting and the structured fields services attach."""

import json
import logging
import sys
from unittest.mock import MagicMock

import pytest

from knowledge_assistant.config.logging import (
    ROOT_LOGGER_NAME,
    JSONExceptionFormatter,
    KeyValueFormatter,
    record_fields,
    setup_logging,
)
from knowledge_assistant.core.domain import LoadedContent, SourceDescriptor
from knowledge_assistant.core.domain.exceptions import RetrievalError
from knowledge_assistant.core.ports import ContentLoaderPort
from knowledge_assistant.core.services import DocumentStore, KnowledgeSearchService

pytestmark = pytest.mark.unit


def _record(msg="Knowledge base built", extra=None, exc_info=None) -> logging.LogRecord:
    return logging.getLogger("knowledge_assistant.tests").makeRecord(
        "knowledge_assistant.tests", logging.INFO, __file__, 10, msg, (), exc_info, extra=extra
    )


@pytest.fixture
def package_logger():
    """Restore the package logger after setup_logging replaced its handlers."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestFormatters:
    def test_record_fields_only_returns_extras(self):
        record = _record(extra={"event": "rebuild", "documents": 3})
        assert record_fields(record) == {"event": "rebuild", "documents": 3}
        assert record_fields(_record()) == {}

    def test_json_carries_fields(self):
        entry = json.loads(JSONExceptionFormatter().format(_record(extra={"event": "rebuild", "failed": 1})))
        assert entry["message"] == "Knowledge base built"
        assert entry["fields"] == {"event": "rebuild", "failed": 1}
        assert entry["location"]["line"] == 10

    def test_json_without_fields_has_no_fields_key(self):
        entry = json.loads(JSONExceptionFormatter().format(_record()))
        assert "fields" not in entry
        assert "exception" not in entry

    def test_json_serializes_assistant_error_with_code(self):
        try:
            raise RetrievalError("search broke", context={"query": "OBS"})
        except RetrievalError:
            record = _record("Search failed", exc_info=sys.exc_info())

        entry = json.loads(JSONExceptionFormatter().format(record))
        assert entry["exception"]["error"]["code"] == "KA_RET_001"
        assert entry["exception"]["context"] == {"query": "OBS"}

    def test_json_serializes_plain_exception_with_traceback(self):
        try:
            raise KeyError("missing")
        except KeyError:
            record = _record("Lookup failed", exc_info=sys.exc_info())

        entry = json.loads(JSONExceptionFormatter().format(record))
        assert entry["exception"]["type"] == "KeyError"
        assert "Traceback" in entry["exception"]["traceback"]

    def test_json_keeps_japanese_text(self):
        line = JSONExceptionFormatter().format(_record(extra={"source": "配信ガイド"}))
        assert "配信ガイド" in line

    def test_key_value_appends_fields(self):
        line = KeyValueFormatter().format(_record(extra={"event": "rebuild", "documents": 3}))
        assert line.endswith("| Knowledge base built | event=rebuild documents=3")

    def test_key_value_keeps_traceback_below_fields(self):
        try:
            raise KeyError("missing")
        except KeyError:
            record = _record("Lookup failed", extra={"source": "a"}, exc_info=sys.exc_info())

        first, _, rest = KeyValueFormatter().format(record).partition("\n")
        assert first.endswith("Lookup failed | source=a")
        assert rest.startswith("Traceback")


class TestSetupLogging:
    def test_handlers_are_replaced_not_stacked(self, package_logger):
        setup_logging("DEBUG")
        setup_logging("DEBUG")
        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.DEBUG

    def test_log_file_and_json(self, package_logger, tmp_path):
        log_file = tmp_path / "logs" / "assistant.log"
        setup_logging("INFO", log_file=log_file, json_format=True)

        assert len(package_logger.handlers) == 2
        assert all(isinstance(h.formatter, JSONExceptionFormatter) for h in package_logger.handlers)
        assert log_file.parent.is_dir()

    def test_noisy_libraries_are_quieted(self, package_logger):
        setup_logging("DEBUG")
        assert logging.getLogger("urllib3").level == logging.WARNING


class TestServiceFields:
    def test_rebuild_and_failure_records_carry_counts(self, caplog):
        loader = MagicMock(spec=ContentLoaderPort)
        loader.load.side_effect = [LoadedContent(content="OBSの設定"), RuntimeError("404")]
        store = DocumentStore(loader=loader, fetch_delay_seconds=0)
        sources = [
            SourceDescriptor(url="https://example.com/a", file_name="a"),
            SourceDescriptor(url="https://example.com/b", file_name="b"),
        ]

        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER_NAME):
            store.rebuild(sources)

        failed = next(r for r in caplog.records if getattr(r, "event", None) == "load_failed")
        assert (failed.source, failed.url) == ("b", "https://example.com/b")

        built = next(r for r in caplog.records if getattr(r, "event", None) == "rebuild")
        assert (built.documents, built.failed) == (2, 1)
        assert built.characters > 0

    def test_search_record_carries_scores(self, build_store, caplog):
        store = build_store(
            [
                (SourceDescriptor(url="https://example.com/obs", file_name="OBS設定"), "OBSの設定手順"),
                (SourceDescriptor(url="https://example.com/other", file_name="その他"), "サムネイル"),
            ]
        )

        with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER_NAME):
            results = KnowledgeSearchService(store).search("OBS設定")

        record = next(r for r in caplog.records if getattr(r, "event", None) == "search")
        assert record.candidates == 2
        assert record.returned == len(results)
        assert record.top_source == results[0].source
        assert record.top_score == round(results[0].score, 3)
