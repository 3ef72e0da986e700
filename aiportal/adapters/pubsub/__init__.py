"""PubSub adapters."""

from aiportal.adapters.pubsub.fake import FakePubSub
from aiportal.adapters.pubsub.redis import RedisPubSub

__all__ = ["FakePubSub", "RedisPubSub"]
