"""Unit tests for the answerability gate."""

import pytest

from knowledge_assistant.core.domain import Document, SearchResult
from knowledge_assistant.core.services import AnswerabilityGate

pytestmark = pytest.mark.unit


def _results(*scores: float) -> list[SearchResult]:
    doc = Document(source="doc", url="https://example.com", content="")
    return [SearchResult(document=doc, score=score) for score in scores]


def test_no_results_cannot_answer():
    assessment = AnswerabilityGate().assess([], "OBS")
    assert not assessment.can_answer
    assert assessment.confidence == 0.0
    assert assessment.relevant_count == 0


def test_low_top_score_cannot_answer():
    assessment = AnswerabilityGate(threshold=0.3).assess(_results(0.29, 0.1))
    assert not assessment.can_answer
    assert assessment.confidence == pytest.approx(0.29)


def test_threshold_is_inclusive():
    assessment = AnswerabilityGate(threshold=0.3).assess(_results(0.3))
    assert assessment.can_answer


def test_relevant_count_and_confidence():
    assessment = AnswerabilityGate(threshold=0.3).assess(_results(5.2, 0.4, 0.1))
    assert assessment.can_answer
    assert assessment.confidence == pytest.approx(5.2)
    assert assessment.relevant_count == 2
    assert "2件" in assessment.reason


def test_min_results():
    gate = AnswerabilityGate(threshold=0.3, min_results=2)
    assert not gate.assess(_results(1.0)).can_answer
    assert gate.assess(_results(1.0, 0.1)).can_answer
