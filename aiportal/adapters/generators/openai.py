"""OpenAI chat-completions text generator.

Works against OpenAI or any OpenAI-compatible endpoint (``base_url``), e.g.
OpenRouter. Upstream errors are translated into ``GeneratorError`` with a
stable code; quota and rate exhaustion are flagged so a fallback can take
over.
"""

import time
from typing import AsyncIterator, Optional

import openai
from openai import AsyncOpenAI

from aiportal.core.logging import logger
from aiportal.domains.generation.exceptions import GeneratorError
from aiportal.domains.generation.types import (
    SYSTEM_MESSAGE,
    ContentType,
    GenerationOptions,
    GenerationRequest,
    GenerationResult,
    build_prompt,
)
from aiportal.domains.usage.types import count_words

INSUFFICIENT_QUOTA = "insufficient_quota"


class OpenAITextGenerator:
    """TextGeneratorProtocol implementation backed by ``AsyncOpenAI``."""

    PROVIDER = "openai"
    MAX_RETRIES = 2

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        *,
        base_url: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float = 120.0,
    ) -> None:
        """Create the client.

        Args:
            api_key: Upstream API key.
            model: Chat model id.
            base_url: OpenAI-compatible endpoint override.
            max_tokens: Completion token cap per call.
            temperature: Sampling temperature.
            timeout: Per-request timeout in seconds.
        """
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=self.MAX_RETRIES,
        )

    @property
    def model_id(self) -> str:
        return self._model

    @property
    def provider_key(self) -> str:
        """Circuit-breaker key for this upstream."""
        return f"{self.PROVIDER}/{self._model}"

    async def generate(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> GenerationResult:
        """Generate the full text in one call.

        Raises:
            GeneratorError: the upstream call failed.
        """
        started = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                **self._params(prompt, content_type, options)
            )
        except openai.OpenAIError as e:
            raise _to_generator_error(e) from e

        duration_ms = int((time.monotonic() - started) * 1000)
        content = response.choices[0].message.content if response.choices else None
        if not content:
            return GenerationResult(
                success=False,
                model_id=self._model,
                duration_ms=duration_ms,
                error="Upstream returned empty content",
                error_code="EMPTY_COMPLETION",
            )

        return GenerationResult(
            success=True,
            content=content,
            words_generated=count_words(content),
            model_id=self._model,
            duration_ms=duration_ms,
        )

    async def stream(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> AsyncIterator[str]:
        """Yield completion deltas as they arrive.

        Raises:
            GeneratorError: the upstream call failed before or during the stream.
        """
        try:
            response = await self._client.chat.completions.create(
                **self._params(prompt, content_type, options), stream=True
            )
        except openai.OpenAIError as e:
            raise _to_generator_error(e) from e

        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.OpenAIError as e:
            raise _to_generator_error(e) from e
        finally:
            await response.close()

    def _params(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> dict:
        user_message = build_prompt(
            GenerationRequest(prompt=prompt, content_type=content_type, options=options)
        )
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": user_message},
            ],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }


def _to_generator_error(e: openai.OpenAIError) -> GeneratorError:
    """Translate an openai exception into a GeneratorError."""
    if isinstance(e, openai.AuthenticationError):
        logger.error(f"[OpenAITextGenerator] Authentication failed: {e}")
        return GeneratorError(f"Authentication failed: {e}", code="AUTHENTICATION_ERROR")

    if isinstance(e, openai.APITimeoutError):
        return GeneratorError(f"Request timed out: {e}", code="TIMEOUT")

    if isinstance(e, openai.APIConnectionError):
        return GeneratorError(f"Connection failed: {e}", code="CONNECTION_ERROR")

    if isinstance(e, openai.APIStatusError):
        code = getattr(e, "code", None)
        exhausted = code == INSUFFICIENT_QUOTA or e.status_code == 429
        if exhausted:
            logger.warning(f"[OpenAITextGenerator] Upstream quota exhausted: {e}")
        return GeneratorError(
            str(e),
            code=code or ("RATE_LIMITED" if e.status_code == 429 else "API_ERROR"),
            quota_exhausted=exhausted,
        )

    return GeneratorError(str(e), code="API_ERROR")
