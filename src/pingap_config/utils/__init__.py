"""Utility functions."""

from pingap_config.utils.freeze import freeze, thaw
from pingap_config.utils.logging import configure_logging

__all__ = [
    "configure_logging",
    "freeze",
    "thaw",
]
