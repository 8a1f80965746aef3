"""Decides whether retrieved results are strong enough to answer from."""

from ..domain import Assessment, SearchResult


class AnswerabilityGate:
    """Refuse-or-answer decision for knowledge-only answers."""

    def __init__(self, threshold: float = 0.3, min_results: int = 1) -> None:
        """Initialize the gate.

        Args:
            threshold: Minimum top score required to answer.
            min_results: Minimum number of results required to answer.
        """
        self.threshold = threshold
        self.min_results = min_results

    def assess(self, results: list[SearchResult], query: str = "") -> Assessment:
        """Assess the search results for a query.

        Args:
            results: Ranked search results.
            query: The query the results belong to.

        Returns:
            Assessment with the decision, a reason and the top score as confidence.
        """
        if not results or len(results) < self.min_results:
            return Assessment(
                can_answer=False,
                reason="関連する情報が知識ベースに見つかりませんでした",
                confidence=0.0,
                relevant_count=0,
            )

        max_relevance = max(result.score for result in results)
        if max_relevance < self.threshold:
            return Assessment(
                can_answer=False,
                reason="関連性の高い情報が見つかりませんでした",
                confidence=max_relevance,
                relevant_count=0,
            )

        relevant_count = sum(1 for result in results if result.score >= self.threshold)
        return Assessment(
            can_answer=True,
            reason=f"{relevant_count}件の関連資料が見つかりました",
            confidence=max_relevance,
            relevant_count=relevant_count,
        )
