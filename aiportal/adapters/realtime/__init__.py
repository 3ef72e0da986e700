"""Live-connection registry adapters."""

from aiportal.adapters.realtime.in_memory import InMemoryConnectionRegistry
from aiportal.adapters.realtime.pubsub import PubSubConnectionRegistry

__all__ = ["InMemoryConnectionRegistry", "PubSubConnectionRegistry"]
