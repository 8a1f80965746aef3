"""Completion Port Interface."""

from abc import ABC, abstractmethod

from ..domain import ImageDescriptor


class CompletionPort(ABC):
    """Abstract interface for chat-completion providers."""

    @abstractmethod
    def generate_text(
        self,
        system_prompt: str,
        user_query: str,
        images: list[ImageDescriptor] | None = None,
        *,
        temperature: float = 0.5,
        max_tokens: int = 3000,
        timeout: float | None = None,
    ) -> str:
        """Generate a response for the user query.

        Args:
            system_prompt: Instructions including any retrieved context.
            user_query: The user's question.
            images: Images (with URLs) for vision-capable models.
            temperature: Sampling temperature.
            max_tokens: Output token cap.
            timeout: Deadline in seconds, or None for the provider default.

        Raises:
            GenerationError: If the provider fails.
        """
        ...
