"""
Pulse Configuration Module
==========================

Settings for the API, the CLI and the LLM collaborator, read from the
process environment (a .env file at the repository root is loaded first).

Environment Variables:
    ANTHROPIC_API_KEY: Anthropic API key (deep dive / analyze-text)
    PULSE_LLM_MODEL: Model used for review analysis (default: claude-sonnet-4-20250514)
    PULSE_LLM_MAX_TOKENS: Max completion tokens (default: 1024)
    PULSE_MAX_INPUT_CHARS: Review text is truncated to this length (default: 10000)

    DATABASE_HOST: PostgreSQL host (default: localhost)
    DATABASE_PORT: PostgreSQL port (default: 5432)
    DATABASE_NAME: Database name (default: pulse)
    DATABASE_USER: Database user (default: pulse_app)
    DATABASE_PASSWORD: Database password (persistence disabled when unset)

    PULSE_COMMENT_PREVIEW: Verbatim comments kept per location (default: 3)
    PULSE_NOISE_SUBSTRINGS: Comma-separated group keys to drop (default: corporate rollup)
    PULSE_NOISE_MIN_ID_DIGITS: Leading digits that mark a DB-id key (default: 5)

    LOG_LEVEL / LOG_FILE / LOG_JSON: see src.orchestrator.logging_config
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple
from pathlib import Path
from dotenv import load_dotenv


# Load environment variables from .env file if present
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """
    Read a string setting.

    Raises:
        ValueError: required is set and the variable is missing
    """
    value = os.getenv(key, default)
    if required and value is None:
        raise ValueError(f"Required environment variable '{key}' is not set")
    return value


def get_env_int(key: str, default: int) -> int:
    """Read an integer setting; a non-integer value is a configuration error."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_bool(key: str, default: bool) -> bool:
    """Read a flag: true, 1, yes or on (any case) enable it."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def get_env_list(key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Get a comma-separated environment variable as a tuple of stripped items."""
    value = os.getenv(key)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class LLMConfig:
    """LLM collaborator configuration."""

    api_key: Optional[str] = field(default_factory=lambda: get_env("ANTHROPIC_API_KEY"))
    model: str = field(default_factory=lambda: get_env("PULSE_LLM_MODEL", "claude-sonnet-4-20250514"))
    max_tokens: int = field(default_factory=lambda: get_env_int("PULSE_LLM_MAX_TOKENS", 1024))

    # Review text sent to the model is cut at this many characters
    max_input_chars: int = field(default_factory=lambda: get_env_int("PULSE_MAX_INPUT_CHARS", 10000))

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        if self.max_input_chars <= 0:
            raise ValueError("max_input_chars must be positive")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass
class DatabaseConfig:
    """PostgreSQL configuration for the analyses store."""

    host: str = field(default_factory=lambda: get_env("DATABASE_HOST", "localhost"))
    port: int = field(default_factory=lambda: get_env_int("DATABASE_PORT", 5432))
    name: str = field(default_factory=lambda: get_env("DATABASE_NAME", "pulse"))
    user: str = field(default_factory=lambda: get_env("DATABASE_USER", "pulse_app"))
    password: Optional[str] = field(default_factory=lambda: get_env("DATABASE_PASSWORD"))

    # Connection pool settings
    pool_min_size: int = field(default_factory=lambda: get_env_int("DATABASE_POOL_MIN", 1))
    pool_max_size: int = field(default_factory=lambda: get_env_int("DATABASE_POOL_MAX", 5))

    connect_timeout: int = field(default_factory=lambda: get_env_int("DATABASE_CONNECT_TIMEOUT", 10))
    ssl_mode: str = field(default_factory=lambda: get_env("DATABASE_SSL_MODE", "prefer"))

    @property
    def enabled(self) -> bool:
        """Persistence is optional: no password means no database."""
        return bool(self.password)

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
class AggregationConfig:
    """Dashboard aggregation knobs that operators may tune per deployment."""

    comment_preview: int = field(default_factory=lambda: get_env_int("PULSE_COMMENT_PREVIEW", 3))
    noise_substrings: Tuple[str, ...] = field(
        default_factory=lambda: get_env_list("PULSE_NOISE_SUBSTRINGS", ("corporate rollup",))
    )
    noise_min_id_digits: int = field(default_factory=lambda: get_env_int("PULSE_NOISE_MIN_ID_DIGITS", 5))

    def __post_init__(self):
        if self.comment_preview < 0:
            raise ValueError("comment_preview cannot be negative")
        if self.noise_min_id_digits <= 0:
            raise ValueError("noise_min_id_digits must be positive")


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

    llm: LLMConfig = field(default_factory=LLMConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Application metadata
    app_name: str = "pulse"
    app_version: str = "1.0.0"


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide Settings, built on first access."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
