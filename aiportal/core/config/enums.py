"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like logging format and seeding.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"


class RealtimeBackend(str, Enum):
    """Live-connection registry backends.

    MEMORY keeps connections in process (single node, tests).
    REDIS fans out over Redis pub/sub so any node can reach any connection.
    """

    MEMORY = "memory"
    REDIS = "redis"


class GrantPolicy(str, Enum):
    """Named policy deciding which grant applies when resolving entitlements.

    SUBSCRIPTION_OR_TRIAL: an active subscription wins, then an active trial;
        with neither the caller has no grant at all.
    FREE_TIER_FALLBACK: same precedence, but callers with neither receive a
        synthetic free-tier grant built from the FREE_TIER_* settings.
    """

    SUBSCRIPTION_OR_TRIAL = "subscription_or_trial"
    FREE_TIER_FALLBACK = "free_tier_fallback"
