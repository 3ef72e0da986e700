"""CircuitBreaker protocol for generator failover.

When an upstream generator signals quota exhaustion, the circuit breaker
records it and the fallback generator serves requests for a cooldown
period instead of hammering an upstream that will keep refusing.

After the cooldown expires the upstream is tried again ("half-open").
A successful call clears the failure state immediately.

Usage:
    if await circuit_breaker.is_available("openai/gpt-3.5-turbo"):
        try:
            result = await primary.generate(...)
            await circuit_breaker.record_success("openai/gpt-3.5-turbo")
        except GeneratorError:
            await circuit_breaker.record_failure("openai/gpt-3.5-turbo")
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CircuitBreaker(Protocol):
    """Tracks which upstream providers recently failed and should be skipped."""

    async def is_available(self, provider_key: str) -> bool:
        """Return True if the provider has no recent failure or its cooldown expired."""
        ...

    async def record_failure(self, provider_key: str) -> None:
        """Mark a provider as failed, starting the cooldown period."""
        ...

    async def record_success(self, provider_key: str) -> None:
        """Clear failure state for a provider."""
        ...
