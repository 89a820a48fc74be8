"""
Smart Reviews Configuration Module
==================================

Centralized configuration management using environment variables.
Supports both .env files and system environment variables.

Environment Variables:
    DATABASE_HOST: PostgreSQL host (default: localhost)
    DATABASE_PORT: PostgreSQL port (default: 5432)
    DATABASE_NAME: Database name (default: smartreviews)
    DATABASE_USER: Database user (default: postgres)
    DATABASE_PASSWORD: Database password (default: empty)
    DATABASE_POOL_MIN: Minimum pool connections (default: 1)
    DATABASE_POOL_MAX: Maximum pool connections (default: 10)

    LLM_PROVIDER: anthropic | openai (default: auto-detect from API keys)
    LLM_MODEL: Model name (default: provider default)
    LLM_MAX_TOKENS: Completion token cap (default: 1024)
    LLM_TEMPERATURE: Sampling temperature (default: 0.7)
    LLM_TIMEOUT_SECONDS: Completion timeout (default: none, blocking)

    SUMMARY_PERIOD: Reviews between summary regenerations (default: 3)
    KEYWORD_PERIOD: Reviews between keyword regenerations (default: 2)

    SERVER_HOST / SERVER_PORT: HTTP bind address (default: 0.0.0.0:8000)
    LOG_LEVEL / LOG_JSON / LOG_FILE: Logging output
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv


# Load environment variables from .env file if present
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable, or default when not set."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_float(key: str, default: Optional[float]) -> Optional[float]:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be a float, got: {value}")


def get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class DatabaseConfig:
    """PostgreSQL database configuration."""

    host: str = field(default_factory=lambda: get_env("DATABASE_HOST", "localhost"))
    port: int = field(default_factory=lambda: get_env_int("DATABASE_PORT", 5432))
    name: str = field(default_factory=lambda: get_env("DATABASE_NAME", "smartreviews"))
    user: str = field(default_factory=lambda: get_env("DATABASE_USER", "postgres"))
    password: str = field(default_factory=lambda: get_env("DATABASE_PASSWORD", ""))

    # Connection pool settings
    pool_min_size: int = field(default_factory=lambda: get_env_int("DATABASE_POOL_MIN", 1))
    pool_max_size: int = field(default_factory=lambda: get_env_int("DATABASE_POOL_MAX", 10))

    # Connection timeout
    connect_timeout: int = field(default_factory=lambda: get_env_int("DATABASE_CONNECT_TIMEOUT", 10))

    # SSL mode: disable, allow, prefer, require, verify-ca, verify-full
    ssl_mode: str = field(default_factory=lambda: get_env("DATABASE_SSL_MODE", "prefer"))

    @property
    def connection_dict(self) -> dict:
        """Connection parameters as dictionary for psycopg2."""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.name,
            "user": self.user,
            "password": self.password,
            "sslmode": self.ssl_mode,
            "connect_timeout": self.connect_timeout,
        }

    def __post_init__(self):
        """Validate configuration."""
        if self.pool_min_size > self.pool_max_size:
            raise ValueError("pool_min_size cannot exceed pool_max_size")


@dataclass
class LLMConfig:
    """Completion service configuration."""

    provider: Optional[str] = field(default_factory=lambda: get_env("LLM_PROVIDER"))
    model: Optional[str] = field(default_factory=lambda: get_env("LLM_MODEL"))
    max_tokens: int = field(default_factory=lambda: get_env_int("LLM_MAX_TOKENS", 1024))
    temperature: float = field(default_factory=lambda: get_env_float("LLM_TEMPERATURE", 0.7))

    # None means the call blocks until the provider answers
    timeout_seconds: Optional[float] = field(
        default_factory=lambda: get_env_float("LLM_TIMEOUT_SECONDS", None)
    )

    def __post_init__(self):
        """Validate configuration."""
        if self.provider is not None:
            self.provider = self.provider.lower()
            if self.provider not in ("anthropic", "openai"):
                raise ValueError(f"Unsupported LLM_PROVIDER: {self.provider}")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


@dataclass
class SynthesisConfig:
    """Regeneration periods for the derived review artifacts."""

    summary_period: int = field(default_factory=lambda: get_env_int("SUMMARY_PERIOD", 3))
    keyword_period: int = field(default_factory=lambda: get_env_int("KEYWORD_PERIOD", 2))

    def __post_init__(self):
        """Validate configuration."""
        if self.summary_period <= 0:
            raise ValueError("summary_period must be positive")
        if self.keyword_period <= 0:
            raise ValueError("keyword_period must be positive")


@dataclass
class ServerConfig:
    """HTTP server configuration."""

    host: str = field(default_factory=lambda: get_env("SERVER_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: get_env_int("SERVER_PORT", 8000))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: get_env("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: get_env("LOG_FILE"))

    # Structured logging
    json_logs: bool = field(default_factory=lambda: get_env_bool("LOG_JSON", False))


@dataclass
class Settings:
    """Main application settings container."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_settings() -> Settings:
    """
    Load and validate all application settings.

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    return Settings()


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings():
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
