"""In-memory circuit breaker.

Keeps the monotonic time of each provider's last failure and treats the
provider as unavailable until the cooldown has elapsed. State lives in this
process only; each replica trips independently.
"""

import asyncio
import time

from aiportal.core.logging import logger


class InMemoryCircuitBreaker:
    """In-memory implementation of the CircuitBreaker protocol.

    A provider is skipped for ``cooldown_seconds`` after a failure. Once the
    cooldown has passed, ``is_available`` returns True again (half-open) and a
    successful call clears the entry.
    """

    DEFAULT_COOLDOWN_SECONDS = 60.0

    def __init__(self, cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS) -> None:
        """Initialize with the cooldown applied after each failure."""
        self._cooldown = cooldown_seconds
        self._failures: dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def is_available(self, provider_key: str) -> bool:
        """Return True unless the provider failed within the cooldown."""
        async with self._lock:
            failed_at = self._failures.get(provider_key)
            if failed_at is None:
                return True

            elapsed = time.monotonic() - failed_at
            if elapsed >= self._cooldown:
                del self._failures[provider_key]
                logger.info(
                    f"[CircuitBreaker] Cooldown over for '{provider_key}' "
                    f"after {elapsed:.0f}s, retrying upstream"
                )
                return True

            return False

    async def record_failure(self, provider_key: str) -> None:
        """Trip the provider, restarting its cooldown."""
        async with self._lock:
            self._failures[provider_key] = time.monotonic()
            logger.warning(
                f"[CircuitBreaker] '{provider_key}' exhausted, "
                f"serving fallback for {self._cooldown:.0f}s"
            )

    async def record_success(self, provider_key: str) -> None:
        """Clear the provider's failure entry, if any."""
        async with self._lock:
            if self._failures.pop(provider_key, None) is not None:
                logger.info(f"[CircuitBreaker] '{provider_key}' recovered")

    @property
    def tripped_providers(self) -> dict[str, float]:
        """Seconds since failure for every provider still cooling down."""
        now = time.monotonic()
        return {key: now - ts for key, ts in self._failures.items() if now - ts < self._cooldown}
