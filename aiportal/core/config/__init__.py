"""Configuration module for the AI Portal backend.

Provides centralized configuration management with type-safe enums.

Usage:
    from aiportal.core.config import settings, GrantPolicy

    if settings.GRANT_POLICY == GrantPolicy.FREE_TIER_FALLBACK:
        ...
"""

from aiportal.core.config.enums import Environment, GrantPolicy, RealtimeBackend
from aiportal.core.config.settings import Settings

__all__ = [
    "Settings",
    "Environment",
    "GrantPolicy",
    "RealtimeBackend",
    "settings",
]

# Singleton settings instance
settings = Settings()
