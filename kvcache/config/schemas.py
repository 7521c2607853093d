"""
kvcache — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration is defined here and validated when loaded.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class StoreBackend(str, Enum):
    """Supported store backends."""

    MEMORY = "memory"
    REDIS = "redis"


class SizeStrategyKind(str, Enum):
    """Built-in size strategies selectable from configuration."""

    PAYLOAD = "payload"
    FIXED = "fixed"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


class CacheConfig(BaseModel):
    """Cache contract settings (one cache instance)."""

    name: str = Field(default="default", min_length=1, description="Cache instance name")
    enabled: bool = Field(default=True, description="Administrative enable flag")
    max_size: int = Field(
        default=100 * 1024 * 1024,
        ge=0,
        description="Configured max size in bytes (0 disables the cache)",
    )
    default_expiration_seconds: int = Field(
        default=3600,
        ge=0,
        description="Default TTL for add() in seconds (0 = never expires)",
    )
    size_strategy: SizeStrategyKind = Field(
        default=SizeStrategyKind.PAYLOAD,
        description="How the advisory size of a record is estimated",
    )
    fixed_record_size: int = Field(default=1, ge=0, description="Record size used by the 'fixed' size strategy")


class StoreConfig(BaseModel):
    """Store backend settings."""

    backend: StoreBackend = Field(default=StoreBackend.MEMORY, description="Store backend to use")
    namespace: str = Field(default="kvcache", min_length=1, description="Key namespace/prefix")

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: float = Field(default=5.0, gt=0, description="Redis socket timeout in seconds")
    redis_enable_scan: bool = Field(default=True, description="Allow SCAN-based key enumeration")
    redis_retry_attempts: int = Field(default=0, ge=0, description="Store-level retries on connectivity failures")
    redis_retry_base_delay: float = Field(default=0.1, gt=0, description="Initial retry backoff in seconds")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == StoreBackend.REDIS and not v:
            raise ValueError("redis_url is required when store backend is 'redis'")
        return v


class KVCacheConfig(BaseModel):
    """Root configuration for kvcache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Log output format")

    cache: CacheConfig = Field(default_factory=CacheConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
