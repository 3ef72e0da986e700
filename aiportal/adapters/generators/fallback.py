"""Quota fallback generator.

Wraps a primary (upstream) generator and a fallback (usually the mock).
When the primary signals quota exhaustion the breaker trips and the fallback
serves until the cooldown expires. Any other primary failure propagates.

A stream only falls back when the primary failed before its first fragment;
once text has been delivered, switching sources would splice two unrelated
outputs together.
"""

from contextlib import aclosing
from typing import AsyncIterator, Optional

from aiportal.core.logging import logger
from aiportal.core.protocols.circuit_breaker import CircuitBreaker
from aiportal.domains.generation.exceptions import GeneratorError
from aiportal.domains.generation.protocols import TextGeneratorProtocol
from aiportal.domains.generation.types import ContentType, GenerationOptions, GenerationResult


class QuotaFallbackGenerator:
    """TextGeneratorProtocol that switches to a fallback on upstream quota exhaustion."""

    def __init__(
        self,
        primary: TextGeneratorProtocol,
        fallback: TextGeneratorProtocol,
        circuit_breaker: CircuitBreaker,
        provider_key: Optional[str] = None,
    ) -> None:
        """Initialize.

        Args:
            primary: Upstream generator tried first.
            fallback: Generator used while the primary is tripped.
            circuit_breaker: Remembers quota exhaustion across requests.
            provider_key: Breaker key; defaults to the primary's ``provider_key``
                or model id.
        """
        self._primary = primary
        self._fallback = fallback
        self._breaker = circuit_breaker
        self._key = provider_key or getattr(primary, "provider_key", primary.model_id)
        self._serving = primary

    @property
    def model_id(self) -> str:
        return self._serving.model_id

    async def generate(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> GenerationResult:
        if await self._breaker.is_available(self._key):
            self._serving = self._primary
            try:
                result = await self._primary.generate(prompt, content_type, options)
            except GeneratorError as e:
                if not e.quota_exhausted:
                    raise
                await self._trip(e)
            else:
                await self._breaker.record_success(self._key)
                return result

        self._serving = self._fallback
        return await self._fallback.generate(prompt, content_type, options)

    async def stream(
        self, prompt: str, content_type: ContentType, options: GenerationOptions
    ) -> AsyncIterator[str]:
        if await self._breaker.is_available(self._key):
            self._serving = self._primary
            delivered = False
            try:
                async with aclosing(
                    self._primary.stream(prompt, content_type, options)
                ) as fragments:
                    async for fragment in fragments:
                        delivered = True
                        yield fragment
            except GeneratorError as e:
                if delivered or not e.quota_exhausted:
                    raise
                await self._trip(e)
            else:
                await self._breaker.record_success(self._key)
                return

        self._serving = self._fallback
        async with aclosing(self._fallback.stream(prompt, content_type, options)) as fragments:
            async for fragment in fragments:
                yield fragment

    async def _trip(self, error: GeneratorError) -> None:
        logger.warning(
            f"[QuotaFallbackGenerator] '{self._key}' quota exhausted ({error.code}), "
            f"falling back to {self._fallback.model_id}"
        )
        await self._breaker.record_failure(self._key)
