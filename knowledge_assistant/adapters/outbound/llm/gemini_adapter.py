"""Google Gemini completion adapter using the google-genai SDK."""

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

import requests

from ....common.rate_limiter import RateLimiter
from ....common.utils import clean_text
from ....core.domain import ImageDescriptor
from ....core.domain.exceptions import (
    GenerationError,
    GenerationTimeoutError,
    LLMRateLimitError,
    MissingAPIKeyError,
)
from ....core.ports import CompletionPort

if TYPE_CHECKING:
    from google import genai
    from google.genai import types

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("quota", "rate limit", "rate_limit", "429", "resource_exhausted")
TIMEOUT_MARKERS = ("timeout", "timed out", "deadline")


class GeminiCompletionAdapter(CompletionPort):
    """Completion provider backed by Gemini.

    Owns the retry policy: quota and rate-limit errors are retried with
    exponential backoff up to ``max_retries`` attempts. Other failures are
    raised immediately as GenerationError.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        rate_limiter: RateLimiter | None = None,
        max_retries: int = 3,
        image_timeout: float = 15.0,
        sleep: Callable[[float], None] = time.sleep,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: Google AI API key.
            model: Model to use (default: gemini-2.0-flash for free tier).
            rate_limiter: Optional limiter acquired before each request.
            max_retries: Attempts for rate-limited requests.
            image_timeout: Timeout for downloading image attachments.
            sleep: Sleep function used for backoff, replaceable in tests.
            session: HTTP session used to download images.
        """
        self.api_key = api_key
        self.model_name = model
        self.rate_limiter = rate_limiter
        self.max_retries = max(1, max_retries)
        self.image_timeout = image_timeout
        self._sleep = sleep
        self._session = session or requests.Session()
        self._client = None

    def _get_client(self) -> "genai.Client":
        """Lazy load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise MissingAPIKeyError(
                    "Google API key not set. Get one at https://aistudio.google.com/ "
                    "and set GOOGLE_API_KEY in your .env file."
                )

            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini client initialized for model: {self.model_name}")

        return self._client

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
        from google.genai import types

        client = self._get_client()
        contents: list = [clean_text(user_query, normalize=False)]
        contents.extend(self._image_parts(images or []))

        http_options = types.HttpOptions(timeout=int(timeout * 1000)) if timeout else None
        config = types.GenerateContentConfig(
            system_instruction=clean_text(system_prompt, normalize=False),
            temperature=temperature,
            max_output_tokens=max_tokens,
            http_options=http_options,
        )

        for attempt in range(self.max_retries):
            if self.rate_limiter:
                self.rate_limiter.acquire()
            try:
                response = client.models.generate_content(
                    model=self.model_name,
                    contents=contents,
                    config=config,
                )
            except Exception as e:
                error_msg = str(e).lower()
                if any(marker in error_msg for marker in RATE_LIMIT_MARKERS):
                    if attempt < self.max_retries - 1:
                        wait_time = 2**attempt  # Exponential backoff
                        logger.warning(f"Gemini rate limit hit, retrying in {wait_time}s...")
                        self._sleep(wait_time)
                        continue
                    raise LLMRateLimitError(
                        "Gemini rate limit exceeded after retries",
                        cause=e,
                        context={"attempts": self.max_retries},
                    ) from e
                if any(marker in error_msg for marker in TIMEOUT_MARKERS):
                    raise GenerationTimeoutError(
                        "Gemini request timed out", cause=e, context={"timeout": timeout}
                    ) from e
                logger.error(f"Gemini error: {e}")
                raise GenerationError("Gemini request failed", cause=e) from e

            # Safety filters return no candidates
            if not response.candidates or not response.text:
                raise GenerationError(
                    "Gemini returned no content", context={"model": self.model_name}
                )
            return clean_text(response.text, normalize=False)

        raise GenerationError("Failed to generate response after retries")

    def _image_parts(self, images: list[ImageDescriptor]) -> list["types.Part"]:
        """Download images and wrap them as inline parts. Unreachable images are skipped."""
        from google.genai import types

        parts = []
        for image in images:
            if not image.url:
                continue
            try:
                response = self._session.get(image.url, timeout=self.image_timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                logger.warning(f"Skipping image {image.url}: {e}")
                continue
            mime_type = response.headers.get("Content-Type", "image/jpeg").split(";")[0]
            parts.append(types.Part.from_bytes(data=response.content, mime_type=mime_type))
        return parts
