"""Logging setup with contextual dimensions.

Every module logs through ``logger`` (or a child obtained with
``logger.with_context(...)``). Dimensions are attached to each record under
``record.dimensions`` and rendered as ``key=value`` pairs locally or as a JSON
object in deployed environments.

Usage:
    from aiportal.core.logging import logger

    log = logger.with_context(owner_id=str(owner_id), service="ai_text_writer")
    log.info("Quota check passed")
"""

import json
import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

from aiportal.core.config import settings
from aiportal.core.config.enums import Environment

_LOGGER_NAME = "aiportal"


class _DimensionFormatter(logging.Formatter):
    """Renders the record dimensions after the message."""

    def __init__(self, as_json: bool) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")
        self._as_json = as_json

    def format(self, record: logging.LogRecord) -> str:
        dimensions: Dict[str, Any] = getattr(record, "dimensions", None) or {}
        if self._as_json:
            payload = {
                "ts": self.formatTime(record),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                **dimensions,
            }
            if record.exc_info:
                payload["exc_info"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        base = super().format(record)
        if not dimensions:
            return base
        rendered = " ".join(f"{k}={v}" for k, v in dimensions.items())
        return f"{base} [{rendered}]"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter carrying a dict of dimensions and an optional prefix."""

    def __init__(
        self,
        base: logging.Logger,
        dimensions: Optional[Dict[str, Any]] = None,
        prefix: str = "",
    ) -> None:
        super().__init__(base, dimensions or {})
        self.dimensions: Dict[str, Any] = dict(dimensions or {})
        self.prefix = prefix

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        merged = {**self.dimensions, **extra.pop("dimensions", {})}
        extra["dimensions"] = merged
        kwargs["extra"] = extra
        if self.prefix:
            msg = f"{self.prefix}{msg}"
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with additional dimensions (None values are dropped)."""
        merged = dict(self.dimensions)
        merged.update({k: str(v) for k, v in dimensions.items() if v is not None})
        return ContextualLogger(self.logger, merged, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a child logger that prefixes every message."""
        return ContextualLogger(self.logger, self.dimensions, prefix)


def _configure_base_logger() -> logging.Logger:
    base = logging.getLogger(_LOGGER_NAME)
    if not base.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            _DimensionFormatter(
                as_json=settings.ENVIRONMENT in (Environment.DEV, Environment.PRD)
            )
        )
        base.addHandler(handler)
    base.setLevel(settings.LOG_LEVEL.upper())
    return base


logger = ContextualLogger(_configure_base_logger())
