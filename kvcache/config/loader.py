"""
kvcache — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a cached configuration instance for the process.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import KVCacheConfig

logger = logging.getLogger(__name__)

_config_instance: KVCacheConfig | None = None


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> KVCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in current directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated KVCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    env_path = Path(env_file) if env_file else Path.cwd() / ".env"

    if env_path.exists():
        logger.info("Loading environment from %s", env_path)
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                "Failed to load .env file from %s: %s",
                env_path,
                e,
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect store backend: Redis if REDIS_URL is set, else memory
    redis_url = os.getenv("REDIS_URL")
    store_backend = "redis" if redis_url else "memory"

    try:
        config_dict = {
            "environment": os.getenv("KVCACHE_ENVIRONMENT", "development"),
            "log_level": os.getenv("KVCACHE_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("KVCACHE_LOG_FORMAT", "json").lower(),
            "cache": {
                "name": os.getenv("CACHE_NAME", "default"),
                "enabled": _env_bool("CACHE_ENABLED", "true"),
                "max_size": int(os.getenv("CACHE_MAX_SIZE", str(100 * 1024 * 1024))),
                "default_expiration_seconds": int(os.getenv("CACHE_DEFAULT_EXPIRATION_SECONDS", "3600")),
                "size_strategy": os.getenv("CACHE_SIZE_STRATEGY", "payload").lower(),
                "fixed_record_size": int(os.getenv("CACHE_FIXED_RECORD_SIZE", "1")),
            },
            "store": {
                "backend": os.getenv("STORE_BACKEND", store_backend).lower(),
                "namespace": os.getenv("STORE_NAMESPACE", "kvcache"),
                "redis_url": redis_url,
                "redis_max_connections": int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
                "redis_socket_timeout": float(os.getenv("REDIS_SOCKET_TIMEOUT", "5")),
                "redis_enable_scan": _env_bool("REDIS_ENABLE_SCAN", "true"),
                "redis_retry_attempts": int(os.getenv("REDIS_RETRY_ATTEMPTS", "0")),
                "redis_retry_base_delay": float(os.getenv("REDIS_RETRY_BASE_DELAY", "0.1")),
            },
        }
    except ValueError as e:
        # int()/float() on a malformed environment value
        raise ConfigurationError(
            f"Invalid numeric value in environment: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = KVCacheConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            "Configuration loaded successfully (environment: %s)",
            _config_instance.environment,
            extra={"environment": _config_instance.environment, "store_backend": _config_instance.store.backend},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            "Configuration validation failed: %s",
            e,
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> KVCacheConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current KVCacheConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> KVCacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded KVCacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance. Used by tests."""
    global _config_instance
    _config_instance = None
