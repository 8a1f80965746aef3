"""Review of mission submissions against the mission documents."""

import logging

from ..domain import (
    AnswerMetadata,
    AnswerMode,
    ImageDescriptor,
    RagAnswer,
    SearchOptions,
    SearchResult,
)
from ..ports import CompletionPort
from .generation import generate
from .image_selection import select_images
from .knowledge_search import KnowledgeSearchService
from .prompts import MISSION_NOT_FOUND_MESSAGE, MISSION_REVIEW_PROMPT
from .query_optimizer import optimize_query

logger = logging.getLogger(__name__)

MISSION_CLASSIFICATION = "ミッション"
GOOD_EXAMPLE = "良い例"
BAD_EXAMPLE = "悪い例"

PASS_MARKERS = ("✅ 合格", "評価結果: 合格")
FAIL_MARKERS = ("❌ 不合格", "評価結果: 不合格")
PASS_KEYWORDS = ("合格", "素晴らしい", "よくできました", "基準を満たして")
FAIL_KEYWORDS = ("不合格", "改善が必要", "再提出", "要修正")


def detect_pass_fail(response_text: str) -> bool:
    """Decide whether a review reply judged the submission as passed.

    Explicit verdict markers win. Otherwise the reply passes only when it
    contains a pass keyword and no fail keyword.
    """
    if any(marker in response_text for marker in PASS_MARKERS):
        return True
    if any(marker in response_text for marker in FAIL_MARKERS):
        return False
    has_pass = any(kw in response_text for kw in PASS_KEYWORDS)
    has_fail = any(kw in response_text for kw in FAIL_KEYWORDS)
    return has_pass and not has_fail


def _is_mission(result: SearchResult) -> bool:
    return result.document.classification == MISSION_CLASSIFICATION or MISSION_CLASSIFICATION in result.source


def _is_example(result: SearchResult, marker: str) -> bool:
    return result.document.good_bad_example == marker or marker in result.source


class MissionReviewService:
    """Evaluates a student's mission submission.

    The submission text is reduced to search terms, mission documents are
    retrieved with a very low threshold, narrowed to the referenced lesson
    when possible, and split into good and bad examples that become the
    evaluation criteria.
    """

    def __init__(
        self,
        search: KnowledgeSearchService,
        completion: CompletionPort,
        max_results: int = 50,
        min_score: float = 0.005,
        examples_per_kind: int = 5,
        example_length: int = 800,
        temperature: float = 0.7,
        max_tokens: int = 3000,
        max_images: int = 5,
    ) -> None:
        self.search = search
        self.completion = completion
        self.max_results = max_results
        self.min_score = min_score
        self.examples_per_kind = examples_per_kind
        self.example_length = example_length
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_images = max_images

    def review(
        self,
        submission: str,
        images: list[str | ImageDescriptor] | None = None,
        timeout: float | None = None,
    ) -> RagAnswer:
        """Review a submission.

        Args:
            submission: The student's submission text.
            images: Attached screenshots or artwork.
            timeout: Completion deadline in seconds.

        Returns:
            RagAnswer with the review. ``metadata.extra`` holds ``passed``,
            ``lesson_number`` and ``search_query``. When no mission documents
            are found the reply says so and the model is not called.
        """
        optimized = optimize_query(submission)
        results = self.search.search(
            optimized.query,
            SearchOptions(max_results=self.max_results, min_score=self.min_score),
        )
        logger.info(f"Mission search '{optimized.query}': {len(results)} results")

        missions = [r for r in results if _is_mission(r)]
        selected = missions
        if optimized.lesson_number:
            lesson = f"レッスン{optimized.lesson_number}"
            lesson_docs = [r for r in missions if lesson in r.source or lesson in r.document.content]
            if lesson_docs:
                selected = lesson_docs
            else:
                logger.warning(f"No mission documents for {lesson}; using all missions")

        extra = {
            "lesson_number": optimized.lesson_number,
            "search_query": optimized.query,
            "mission_documents": len(selected),
        }

        if not selected:
            logger.warning("No mission documents found")
            text = MISSION_NOT_FOUND_MESSAGE.format(
                result_count=len(results),
                mission_count=len(missions),
                search_query=optimized.query,
            )
            return RagAnswer(
                text=text,
                metadata=AnswerMetadata(mode=AnswerMode.MISSION, rag_used=True, refused=True, extra=extra),
            )

        good = [r for r in selected if _is_example(r, GOOD_EXAMPLE)]
        bad = [r for r in selected if _is_example(r, BAD_EXAMPLE)]
        category = selected[0].document.category or "不明"
        logger.info(f"Mission category {category}: {len(good)} good, {len(bad)} bad examples")

        selection = select_images(images, [], self.max_images)
        image_context = ""
        if selection.images:
            image_context = (
                f"\n【添付画像】\nユーザーが{len(selection.images)}枚の画像を添付しています。\n"
                "画像の内容を確認して、ミッション評価に反映してください。\n"
            )

        system_prompt = MISSION_REVIEW_PROMPT.format(
            category=category,
            criteria=self._criteria(good, bad),
            image_context=image_context,
            submission=submission,
        )
        text = generate(
            self.completion,
            system_prompt,
            submission,
            selection.images,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=timeout,
        )

        passed = detect_pass_fail(text)
        logger.info(f"Mission verdict: {'passed' if passed else 'needs revision'}")
        scores = [r.score for r in selected]
        return RagAnswer(
            text=text,
            metadata=AnswerMetadata(
                mode=AnswerMode.MISSION,
                rag_used=True,
                chunks_used=len(good) + len(bad),
                sources=[r.source for r in selected],
                average_similarity=sum(scores) / len(scores),
                max_similarity=max(scores),
                images_used=len(selection.images),
                user_images_used=selection.user_count,
                extra={**extra, "passed": passed},
            ),
        )

    def _criteria(self, good: list[SearchResult], bad: list[SearchResult]) -> str:
        sections = ["【ミッション評価基準】\n"]
        if good:
            sections.append("## ✅ 良い例の特徴")
            sections.extend(self._examples(good))
        if bad:
            sections.append("## ❌ 悪い例（避けるべきポイント）")
            sections.extend(self._examples(bad))
        return "\n".join(sections)

    def _examples(self, results: list[SearchResult]) -> list[str]:
        return [
            f"{index}. {r.source}\n{r.document.content[: self.example_length]}\n"
            for index, r in enumerate(results[: self.examples_per_kind], start=1)
        ]
