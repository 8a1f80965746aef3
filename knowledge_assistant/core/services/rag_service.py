"""RAG orchestration: retrieval, context budget, image selection and generation."""

import logging
from dataclasses import dataclass, field

from ..domain import (
    AnswerMetadata,
    AnswerMode,
    ImageDescriptor,
    RagAnswer,
    RagConfig,
    SearchFilters,
    SearchOptions,
    SearchResult,
)
from ..domain.exceptions import (
    AssistantError,
    EmptyQueryError,
    NotInitializedError,
    QueryTooLongError,
    RetrievalError,
    ValidationError,
)
from ..ports import CompletionPort
from .answerability import AnswerabilityGate
from .document_store import DocumentStore
from .generation import generate
from .greetings import detect_greeting
from .image_selection import ImageSelection, select_images
from .knowledge_search import KnowledgeSearchService
from .mission_review import MissionReviewService
from .prompts import (
    BUTTON_INSTRUCTIONS,
    KNOWLEDGE_FOOTER,
    NO_RAG_SYSTEM_PROMPT,
    REFUSAL_MESSAGE,
    build_strict_prompt,
    build_system_prompt,
)

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 4000


@dataclass
class ContextBlock:
    """Rendered knowledge context and the results that made it in."""

    text: str = ""
    results: list[SearchResult] = field(default_factory=list)


def render_result(index: int, result: SearchResult) -> str:
    """Render one search result as a context entry."""
    return f"【資料{index}】{result.source}\n{result.excerpt}\n(関連度: {result.score * 100:.1f}%)\n"


def build_context(results: list[SearchResult], max_length: int) -> ContextBlock:
    """Concatenate rendered results in rank order within a character budget.

    Results are added whole. The first result that would push the total past
    ``max_length`` stops the loop; nothing is cut mid-result.

    Args:
        results: Ranked search results.
        max_length: Character budget for the joined context.

    Returns:
        ContextBlock with the joined text and the included results.
    """
    parts: list[str] = []
    used: list[SearchResult] = []
    total = 0

    for index, result in enumerate(results, start=1):
        entry = render_result(index, result)
        if total + len(entry) > max_length:
            logger.debug(f"Context budget reached after {len(used)} results ({total} chars)")
            break
        parts.append(entry)
        used.append(result)
        total += len(entry)

    return ContextBlock(text="".join(parts), results=used)


class RagService:
    """Turns a question into a grounded answer.

    Modes:
        lenient: retrieve with a low threshold and let the model fill gaps.
        strict: retrieve with a higher threshold, refuse without calling the
            model when the evidence is weak, and append a source footer.
        mission: review a submission against mission documents.
        no_rag: answer from general instructions only.
    """

    def __init__(
        self,
        store: DocumentStore,
        search: KnowledgeSearchService,
        completion: CompletionPort,
        config: RagConfig | None = None,
        gate: AnswerabilityGate | None = None,
        mission_reviewer: MissionReviewService | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Document store backing the search.
            search: Knowledge search service.
            completion: Completion provider.
            config: Retrieval and generation knobs.
            gate: Answerability gate. Built from ``config`` when omitted.
            mission_reviewer: Submission reviewer. Built from the other
                collaborators when omitted.
        """
        self.store = store
        self.search = search
        self.completion = completion
        self.config = config or RagConfig()
        self.gate = gate or AnswerabilityGate(
            threshold=self.config.answer_threshold,
            min_results=self.config.answer_min_results,
        )
        self.mission_reviewer = mission_reviewer or MissionReviewService(
            search=search,
            completion=completion,
            max_tokens=self.config.max_tokens,
            max_images=self.config.max_images,
        )

    def answer(
        self,
        query: str,
        *,
        mode: AnswerMode = AnswerMode.LENIENT,
        images: list[str | ImageDescriptor] | None = None,
        filters: SearchFilters | None = None,
        button_type: str | None = None,
        timeout: float | None = None,
    ) -> RagAnswer:
        """Answer a question.

        Args:
            query: The user's question.
            mode: lenient, strict, mission or no_rag.
            images: User attachments (URLs or descriptors).
            filters: Optional search filters.
            button_type: Entry point, selects extra prompt instructions.
            timeout: Completion deadline in seconds. Defaults to the config value.

        Returns:
            RagAnswer with the text and its metadata.

        Raises:
            ValidationError: If the mode is an outcome only (greeting).
            EmptyQueryError: If the query is blank.
            QueryTooLongError: If the query exceeds the length limit.
            NotInitializedError: If no rebuild has been attempted yet.
            RetrievalError: If searching fails unexpectedly.
            GenerationError: If the completion provider fails.
        """
        if not mode.accepts_requests:
            raise ValidationError(f"'{mode.value}' is not a request mode", context={"mode": mode.value})
        query = self._validate(query)
        timeout = timeout if timeout is not None else self.config.timeout_seconds

        if mode == AnswerMode.NO_RAG:
            return self.answer_without_rag(query, images, button_type=button_type, timeout=timeout)

        if not self.store.is_initialized:
            raise NotInitializedError("Knowledge base has not been built yet")

        if mode == AnswerMode.MISSION:
            return self.mission_reviewer.review(query, images, timeout=timeout)
        if mode == AnswerMode.STRICT:
            return self._answer_strict(query, images, filters, timeout)
        return self._answer_lenient(query, images, filters, button_type, timeout)

    def _answer_lenient(
        self,
        query: str,
        images: list[str | ImageDescriptor] | None,
        filters: SearchFilters | None,
        button_type: str | None,
        timeout: float | None,
    ) -> RagAnswer:
        options = SearchOptions(
            max_results=self.config.lenient_max_results,
            min_score=self.config.lenient_min_score,
            top_k=self.config.top_k,
            filters=filters,
        )
        results = self._search(query, options)
        context = build_context(results, self.config.max_context_length)
        selection = self._select_images(images, context.results)

        system_prompt = build_system_prompt(
            context.text, button_type=button_type, with_images=bool(selection.images)
        )
        text = self._generate(system_prompt, query, selection.images, timeout)

        metadata = self._metadata(AnswerMode.LENIENT, context, selection)
        logger.info(
            f"Lenient answer: {metadata.chunks_used} chunks, {metadata.images_used} images, "
            f"{metadata.context_length} context chars"
        )
        return RagAnswer(text=text, metadata=metadata)

    def _answer_strict(
        self,
        query: str,
        images: list[str | ImageDescriptor] | None,
        filters: SearchFilters | None,
        timeout: float | None,
    ) -> RagAnswer:
        greeting = detect_greeting(query)
        if greeting:
            return RagAnswer(text=greeting, metadata=AnswerMetadata(mode=AnswerMode.GREETING))

        options = SearchOptions(
            max_results=self.config.strict_max_results,
            min_score=self.config.strict_min_score,
            top_k=self.config.top_k,
            filters=filters,
        )
        results = self._search(query, options)
        assessment = self.gate.assess(results, query)

        if not assessment.can_answer:
            logger.info(f"Refusing knowledge-only answer: {assessment.reason}")
            return RagAnswer(
                text=REFUSAL_MESSAGE.format(query=query),
                metadata=AnswerMetadata(
                    mode=AnswerMode.STRICT,
                    rag_used=True,
                    refused=True,
                    assessment=assessment,
                    max_similarity=assessment.confidence,
                ),
            )

        context = build_context(results, self.config.max_context_length)
        selection = self._select_images(images, context.results)
        system_prompt = build_strict_prompt(context.text, with_images=bool(selection.images))
        text = self._generate(system_prompt, query, selection.images, timeout)

        metadata = self._metadata(AnswerMode.STRICT, context, selection)
        metadata.assessment = assessment
        return RagAnswer(
            text=text + KNOWLEDGE_FOOTER.format(count=len(context.results)),
            metadata=metadata,
        )

    def answer_without_rag(
        self,
        query: str,
        images: list[str | ImageDescriptor] | None = None,
        *,
        button_type: str | None = None,
        timeout: float | None = None,
    ) -> RagAnswer:
        """Answer from general instructions only, without touching the knowledge base.

        Used when the knowledge base is unavailable.
        """
        system_prompt = NO_RAG_SYSTEM_PROMPT
        if button_type and button_type in BUTTON_INSTRUCTIONS:
            system_prompt += "\n\n" + BUTTON_INSTRUCTIONS[button_type]

        selection = select_images(images, [], self.config.max_images)
        text = self._generate(system_prompt, query, selection.images, timeout)
        metadata = self._metadata(AnswerMode.NO_RAG, ContextBlock(), selection)
        metadata.rag_used = False
        return RagAnswer(text=text, metadata=metadata)

    def _validate(self, query: str) -> str:
        if not query or not query.strip():
            raise EmptyQueryError("Query cannot be empty or whitespace only")
        query = query.strip()
        if len(query) > MAX_QUERY_LENGTH:
            raise QueryTooLongError(
                f"Query exceeds {MAX_QUERY_LENGTH} characters",
                context={"length": len(query)},
            )
        return query

    def _search(self, query: str, options: SearchOptions) -> list[SearchResult]:
        try:
            return self.search.search(query, options)
        except AssistantError:
            raise
        except Exception as e:
            raise RetrievalError("Knowledge search failed", cause=e) from e

    def _select_images(
        self,
        images: list[str | ImageDescriptor] | None,
        used: list[SearchResult],
    ) -> ImageSelection:
        document_images = [image for result in used for image in result.document.images]
        return select_images(images, document_images, self.config.max_images)

    def _generate(
        self,
        system_prompt: str,
        query: str,
        images: list[ImageDescriptor],
        timeout: float | None,
    ) -> str:
        return generate(
            self.completion,
            system_prompt,
            query,
            images,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            timeout=timeout,
        )

    def _metadata(
        self,
        mode: AnswerMode,
        context: ContextBlock,
        selection: ImageSelection,
    ) -> AnswerMetadata:
        scores = [result.score for result in context.results]
        return AnswerMetadata(
            mode=mode,
            rag_used=True,
            chunks_used=len(context.results),
            sources=[result.source for result in context.results],
            average_similarity=sum(scores) / len(scores) if scores else 0.0,
            max_similarity=max(scores, default=0.0),
            context_length=len(context.text),
            images_used=len(selection.images),
            user_images_used=selection.user_count,
            document_images_used=selection.document_count,
        )
