"""Configuration management for pingap-config."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from pingap_config.models.enums import UpdatePolicy

# Load .env so PINGAP_* vars are available before Pydantic runs
load_dotenv()


class StoreConfig(BaseModel):
    """Configuration for the config store and its backends.

    Parameters can be set directly, via environment variables, or
    via a .env file. Environment variables use the PINGAP_ prefix.

    Env vars:
        PINGAP_ADMIN_URL: Base URL of the pingap admin server
        PINGAP_ADMIN_AUTHORIZATION: Value sent in the Authorization header
        PINGAP_CONFIG_PATH: TOML file or directory (file backend)
        PINGAP_TIMEOUT: Request timeout in seconds
        PINGAP_MAX_RETRIES: Maximum retry attempts
        PINGAP_RETRY_DELAY: Delay between retries in seconds
        PINGAP_MAX_RETRY_DELAY: Upper bound for exponential backoff
        PINGAP_VERIFY_SSL: Verify SSL certificates (true/false)
        PINGAP_UPDATE_POLICY: queue or reject concurrent section updates
    """

    base_url: str = Field(
        default="http://127.0.0.1:3018",
        description="Base URL of the pingap admin server",
    )
    authorization: str | None = Field(
        default=None, description="Authorization header value for the admin API"
    )
    config_path: str | None = Field(
        default=None, description="TOML file or directory used by the file backend"
    )
    admin: bool = Field(
        default=True, description="Treat a missing config path as an empty document"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    max_retries: int = Field(default=3, description="Maximum retry attempts")
    retry_delay: float = Field(
        default=1.0,
        description="Base delay between retries (seconds)",
    )
    max_retry_delay: float = Field(
        default=60.0,
        description="Maximum delay for backoff (seconds); caps exponential backoff",
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    update_policy: UpdatePolicy = Field(
        default=UpdatePolicy.QUEUE,
        description="What to do with a second update for a section already being saved",
    )

    @model_validator(mode="before")
    @classmethod
    def load_from_env(cls, values: Any) -> Any:
        """Load unset values from environment variables."""
        if not isinstance(values, dict):
            return values
        env_map = {
            "base_url": "PINGAP_ADMIN_URL",
            "authorization": "PINGAP_ADMIN_AUTHORIZATION",
            "config_path": "PINGAP_CONFIG_PATH",
            "timeout": "PINGAP_TIMEOUT",
            "max_retries": "PINGAP_MAX_RETRIES",
            "retry_delay": "PINGAP_RETRY_DELAY",
            "max_retry_delay": "PINGAP_MAX_RETRY_DELAY",
            "verify_ssl": "PINGAP_VERIFY_SSL",
            "update_policy": "PINGAP_UPDATE_POLICY",
        }
        for field, env_var in env_map.items():
            if field not in values or values[field] is None:
                env_val = os.environ.get(env_var)
                if env_val is not None:
                    if field == "verify_ssl":
                        values[field] = env_val.strip().lower() in ("1", "true", "yes")
                    elif field == "update_policy":
                        values[field] = env_val.strip().lower()
                    else:
                        values[field] = env_val
        return values

    @model_validator(mode="after")
    def validate_and_normalize(self) -> StoreConfig:
        """Normalize base_url and validate numeric fields."""
        self.base_url = self.base_url.rstrip("/")
        if not (self.base_url.startswith("http://") or self.base_url.startswith("https://")):
            raise ValueError("base_url must start with http:// or https://")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        if self.max_retry_delay < self.retry_delay:
            raise ValueError("max_retry_delay must be >= retry_delay")
        return self
