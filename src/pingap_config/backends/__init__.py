"""Configuration backends."""

from pingap_config.backends.base import ConfigBackend
from pingap_config.backends.file import FileBackend
from pingap_config.backends.http import API_PREFIX, HTTPBackend
from pingap_config.backends.retry import RETRYABLE_EXCEPTIONS, retry_async

__all__ = [
    "API_PREFIX",
    "RETRYABLE_EXCEPTIONS",
    "ConfigBackend",
    "FileBackend",
    "HTTPBackend",
    "retry_async",
]
