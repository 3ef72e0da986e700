"""Circuit breaker adapters."""

from aiportal.adapters.circuit_breaker.fake import FakeCircuitBreaker
from aiportal.adapters.circuit_breaker.in_memory import InMemoryCircuitBreaker

__all__ = ["InMemoryCircuitBreaker", "FakeCircuitBreaker"]
