"""
Downstream forwarding configuration.

Endpoints and shared credentials for the chat provider and the managed
automation engine, read from environment variables.
"""

import os
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from src.constants import (
    DEFAULT_APP_TITLE,
    DEFAULT_CHAT_MODEL,
    DEFAULT_DOWNSTREAM_TIMEOUT_SECONDS,
    DEFAULT_N8N_BASE_URL,
    DEFAULT_OPENROUTER_API_URL,
)
from src.utils.env_utils import parse_float_env, parse_str_env


class ForwardingConfig(BaseSettings):
    """Configuration for outbound chat and workflow calls."""

    # Chat provider
    openrouter_api_url: str = Field(
        default=DEFAULT_OPENROUTER_API_URL,
        description="Chat completions endpoint",
    )
    openrouter_api_key: Optional[str] = Field(
        default=None,
        description="Shared chat provider credential",
    )
    public_base_url: str = Field(
        default="",
        description="Public site URL sent as HTTP-Referer",
    )
    app_title: str = Field(
        default=DEFAULT_APP_TITLE,
        description="Application name sent as X-Title",
    )
    default_chat_model: str = Field(
        default=DEFAULT_CHAT_MODEL,
        description="Model used when the request names none",
    )

    # Managed automation engine
    n8n_base_url: str = Field(
        default=DEFAULT_N8N_BASE_URL,
        description="Managed automation engine base URL",
    )
    n8n_api_key: Optional[str] = Field(
        default=None,
        description="Shared automation engine credential",
    )

    # Transport
    timeout_seconds: float = Field(
        default=DEFAULT_DOWNSTREAM_TIMEOUT_SECONDS,
        description="Timeout for a single downstream call",
    )

    class Config:
        case_sensitive = False

    @classmethod
    def from_env(cls) -> "ForwardingConfig":
        """Create config from environment variables."""
        return cls(
            openrouter_api_url=parse_str_env("OPENROUTER_API_URL", DEFAULT_OPENROUTER_API_URL),
            openrouter_api_key=parse_str_env("OPENROUTER_API_KEY"),
            public_base_url=parse_str_env(
                "PUBLIC_BASE_URL", os.getenv("NEXT_PUBLIC_BASE_URL", "")
            ) or "",
            app_title=parse_str_env("APP_TITLE", DEFAULT_APP_TITLE),
            default_chat_model=parse_str_env("DEFAULT_CHAT_MODEL", DEFAULT_CHAT_MODEL),
            n8n_base_url=parse_str_env("N8N_BASE_URL", DEFAULT_N8N_BASE_URL),
            n8n_api_key=parse_str_env("N8N_API_KEY"),
            timeout_seconds=parse_float_env(
                "DOWNSTREAM_TIMEOUT_SECONDS", DEFAULT_DOWNSTREAM_TIMEOUT_SECONDS
            ),
        )


# Singleton config instance
_config: Optional[ForwardingConfig] = None


def get_forwarding_config() -> ForwardingConfig:
    """Get the forwarding config singleton."""
    global _config
    if _config is None:
        _config = ForwardingConfig.from_env()
    return _config


def reset_forwarding_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
