"""Core protocols implemented by adapters and consumed by domains."""

from aiportal.core.protocols.circuit_breaker import CircuitBreaker
from aiportal.core.protocols.pubsub import PubSub, Subscription
from aiportal.core.protocols.realtime import LiveConnection, LiveConnectionPush

__all__ = [
    "CircuitBreaker",
    "LiveConnection",
    "LiveConnectionPush",
    "PubSub",
    "Subscription",
]
