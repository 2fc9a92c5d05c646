"""Logging configuration for pingap-config."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger("pingap_config")


def configure_logging(
    level: str = "WARNING",
    handler: logging.Handler | None = None,
) -> None:
    """Configure pingap-config logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        handler: Custom handler. If not provided and logger has no handlers,
            a StreamHandler with a default formatter is added.

    Example:
        import pingap_config
        pingap_config.configure_logging("DEBUG")  # log every admin API call
    """
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if handler is not None:
        logger.addHandler(handler)
    elif not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
        logger.addHandler(h)


def _redact(value: str, visible_chars: int = 4) -> str:
    """Redact a secret, showing only the last N characters."""
    if len(value) <= visible_chars:
        return "***"
    return f"***{value[-visible_chars:]}"


# pingap fields whose values carry tokens or private keys
SECRET_FIELDS = frozenset({"webhook", "sentry", "pyroscope", "tls_key"})


def describe_patch(patch: Mapping[str, Any]) -> str:
    """One-line summary of a section patch for log messages.

    ``None`` shows as ``<unset>``; values of :data:`SECRET_FIELDS` are redacted.
    """
    parts = []
    for field in sorted(patch):
        value = patch[field]
        if value is None:
            shown = "<unset>"
        elif field in SECRET_FIELDS:
            shown = _redact(str(value))
        else:
            shown = repr(value)
        parts.append(f"{field}={shown}")
    return ", ".join(parts) or "<empty>"
