"""Fake circuit breaker for testing."""


class FakeCircuitBreaker:
    """Test implementation of CircuitBreaker.

    No cooldown: a tripped provider stays tripped until ``record_success``
    or ``clear``.

    Usage:
        breaker = FakeCircuitBreaker()
        generator = QuotaFallbackGenerator(primary, fallback, breaker)
        ...
        assert breaker.is_tripped("openai/gpt-3.5-turbo")
    """

    def __init__(self) -> None:
        """Initialize with nothing tripped."""
        self._tripped: set[str] = set()
        self.failures: list[str] = []
        self.successes: list[str] = []

    async def is_available(self, provider_key: str) -> bool:
        """Return False once the provider has been tripped."""
        return provider_key not in self._tripped

    async def record_failure(self, provider_key: str) -> None:
        """Trip the provider."""
        self._tripped.add(provider_key)
        self.failures.append(provider_key)

    async def record_success(self, provider_key: str) -> None:
        """Untrip the provider."""
        self._tripped.discard(provider_key)
        self.successes.append(provider_key)

    # Test helpers

    def is_tripped(self, provider_key: str) -> bool:
        """Check whether a provider is currently tripped."""
        return provider_key in self._tripped

    def clear(self) -> None:
        """Reset all state."""
        self._tripped.clear()
        self.failures.clear()
        self.successes.clear()
