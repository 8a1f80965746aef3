"""Completion call wrapper shared by the answer services."""

from ..domain import ImageDescriptor
from ..domain.exceptions import AssistantError, GenerationError
from ..ports import CompletionPort


def generate(
    completion: CompletionPort,
    system_prompt: str,
    query: str,
    images: list[ImageDescriptor],
    *,
    temperature: float,
    max_tokens: int,
    timeout: float | None,
) -> str:
    """Call the completion provider once.

    Retries are the provider's concern. Any non-assistant exception is
    wrapped in GenerationError.
    """
    try:
        return completion.generate_text(
            system_prompt,
            query,
            images,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
    except AssistantError:
        raise
    except Exception as e:
        raise GenerationError("Completion provider failed", cause=e) from e
