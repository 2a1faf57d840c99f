"""
KubeOps platform configuration.

Settings are loaded with pydantic-settings in this priority order:
1. Values set via kubeops.configure() (highest priority)
2. Environment variables (PORT, LOG_LEVEL, LLM_PROVIDER, MEMORY_TYPE, ...);
   MEMORY_URL may also be given as LIBSQL_URL
3. A `.env` file in the current directory
4. Default values

Usage:
    >>> import kubeops
    >>> kubeops.configure(
    ...     llm_provider="anthropic",
    ...     memory_type="sqlite",
    ...     storage=InMemoryStorageBackend(),
    ... )
"""

from typing import TYPE_CHECKING, Any, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from kubeops.storage.base import StorageBackend


class Settings(BaseSettings):
    """Platform settings loaded from environment variables."""

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 3141

    # Logging configuration
    log_level: str = "info"
    log_format: str = "console"  # "console" or "json"
    log_file: str | None = None

    # LLM configuration
    llm_provider: str = "openai"
    llm_model: str | None = None  # None = provider default

    # Memory configuration
    memory_type: str = "in-memory"  # "in-memory" or "sqlite" (alias "libsql")
    memory_url: str = Field(
        default="file:.kubeops/memory.db",
        validation_alias=AliasChoices("memory_url", "libsql_url"),
    )

    # Agent configuration
    agent_max_iterations: int = 10

    # CORS configuration
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Global singletons
_config: Optional[Settings] = None
_storage: Optional["StorageBackend"] = None


def configure(**kwargs: Any) -> None:
    """
    Override platform settings for this process.

    Args:
        storage: Storage backend instance to use instead of the one built from
            the memory settings
        **kwargs: Any `Settings` field (host, port, log_level, llm_provider, ...)

    Raises:
        ValueError: If an option is not a known setting

    Example:
        >>> import kubeops
        >>> from kubeops.storage import InMemoryStorageBackend
        >>>
        >>> kubeops.configure(port=8080, storage=InMemoryStorageBackend())
    """
    global _storage
    config = get_config()

    for key, value in kwargs.items():
        if key == "storage":
            _storage = value
        elif key in Settings.model_fields:
            setattr(config, key, value)
        else:
            valid_keys = ["storage", *Settings.model_fields.keys()]
            raise ValueError(
                f"Unknown config option: {key}. Valid options: {', '.join(valid_keys)}"
            )


def get_config() -> Settings:
    """
    Get the current settings, loading them from the environment on first use.
    """
    global _config
    if _config is None:
        _config = Settings()
    return _config


def get_storage() -> "StorageBackend":
    """
    Get the configured storage backend.

    Created lazily from `memory_type` / `memory_url` unless one was set with
    configure(storage=...).
    """
    global _storage
    if _storage is None:
        from kubeops.storage.config import create_storage

        config = get_config()
        _storage = create_storage(config.memory_type, config.memory_url)
    return _storage


def reset_config() -> None:
    """
    Reset configuration to defaults.

    Primarily used for testing.
    """
    global _config, _storage
    _config = None
    _storage = None
