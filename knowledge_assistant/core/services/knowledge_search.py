"""Knowledge search over the in-memory document store."""

import logging

from ..domain import Document, SearchOptions, SearchResult
from .document_store import DocumentStore
from .relevance_scorer import RelevanceScorer
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


class KnowledgeSearchService:
    """Filters, scores, ranks and truncates documents for a query.

    Search never raises. Any internal failure is logged and an empty result
    list is returned, so callers treat it as "nothing relevant found".
    """

    def __init__(self, store: DocumentStore, scorer: RelevanceScorer | None = None) -> None:
        """Initialize the search service.

        Args:
            store: Document store to read from.
            scorer: Relevance scorer. Defaults to the standard weights.
        """
        self.store = store
        self.scorer = scorer or RelevanceScorer()

    def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Search the knowledge base.

        Args:
            query: User query text.
            options: Result caps, threshold and filters.

        Returns:
            Results sorted by descending score. Equal scores keep store order.
        """
        options = options or SearchOptions()
        try:
            return self._search(query, options)
        except Exception as e:
            logger.error(f"Knowledge search failed for '{query[:50]}': {e}", exc_info=True)
            return []

    def _search(self, query: str, options: SearchOptions) -> list[SearchResult]:
        if not self.store.is_initialized:
            logger.warning("Knowledge base not initialized; returning no results")
            return []

        # Take the snapshot once so a concurrent rebuild cannot mix corpora
        documents = self.store.query()
        if not documents:
            return []

        candidates = len(documents)
        tokens = tokenize(query)
        logger.debug(f"Query tokens: {sorted(tokens)}")

        if options.filters is not None:
            documents = tuple(doc for doc in documents if options.filters.matches(doc))
            logger.debug(
                f"{len(documents)} of {candidates} documents left after filters {options.filters}"
            )

        scored: list[SearchResult] = []
        for document in documents:
            result = self.scorer.score(document, query, tokens)
            scored.append(
                SearchResult(
                    document=document,
                    score=result.score,
                    match_details=result.match_details,
                    excerpt=result.excerpt,
                    metadata=self._metadata(document),
                )
            )

        # sorted() is stable: ties keep their store order
        ranked = sorted(scored, key=lambda r: r.score, reverse=True)
        relevant = [r for r in ranked if r.score >= options.min_score]
        results = relevant[: options.limit]

        diagnostics = {
            "event": "search",
            "query": query[:50],
            "candidates": candidates,
            "filtered": len(documents),
            "relevant": len(relevant),
            "returned": len(results),
            "min_score": options.min_score,
            "top_score": round(results[0].score, 3) if results else None,
            "top_source": results[0].source if results else None,
        }
        if results:
            logger.debug(
                f"Search '{query[:50]}': {len(relevant)} above {options.min_score}, "
                f"top score {results[0].score:.2f} ({results[0].source})",
                extra=diagnostics,
            )
        else:
            logger.debug(f"Search '{query[:50]}': no results above {options.min_score}", extra=diagnostics)
        return results

    @staticmethod
    def _metadata(document: Document) -> dict[str, str | None]:
        return {
            "classification": document.classification,
            "category": document.category,
            "good_bad_example": document.good_bad_example,
            "remarks": document.remarks,
            "type": document.type,
            "url": document.url,
        }
