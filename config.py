"""Configuration management for the Curo memory-augmented chat client.

This module provides centralized configuration for the client and CLI.
All settings are loaded from environment variables with sensible defaults.

Environment Variables:
    Required:
        OPENAI_API_KEY: OpenAI API key (embeddings and chat completions)
        PINECONE_API_KEY: Pinecone API key for the memory index
        PINECONE_ENVIRONMENT: Pinecone environment selector

    Model:
        OPENAI_MODEL: Chat model identifier (default: gpt-3.5-turbo-16k)
        INITIAL_PROMPT: Prompt for new conversations (accepted, not sent)
        OPENAI_TIMEOUT: Request timeout in seconds for the OpenAI SDK
        OPENAI_MAX_RETRIES: Retry attempts performed by the OpenAI SDK

    Optional Features:
        ENABLE_LOGFIRE: Enable Logfire/OpenTelemetry tracing
        LOGFIRE_TOKEN: Logfire authentication token

    Logging:
        LOG_DIR: Directory for log files
        LOG_LEVEL: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_BACKUP_COUNT: Number of rotated log files to keep
        LOG_MAX_BYTES: Max log file size in bytes (0 = time-based rotation)
        LOG_FORMAT: Log format ('text' or 'json' for structured logging)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_MODEL = "gpt-3.5-turbo-16k"


def _env(key: str, default: str = "") -> str:
    """Get string environment variable with optional default.

    Args:
        key: Environment variable name
        default: Value to return if not set

    Returns:
        Environment variable value or default
    """
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name
        default: Value to return if not set

    Returns:
        Parsed integer or default value

    Raises:
        ValueError: If value is set but cannot be parsed as integer
    """
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"Invalid integer value for {key}: '{val}'")


def _env_float(key: str, default: float) -> float:
    """Get float environment variable with default.

    Raises:
        ValueError: If value is set but cannot be parsed as float
    """
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"Invalid float value for {key}: '{val}'")


def _env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable with default.

    Recognizes truthy values: '1', 'true', 'yes', 'on'
    Recognizes falsy values: '0', 'false', 'no', 'off'
    """
    val = os.environ.get(key, "").lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def _redact(secret: str) -> str:
    """Mask a credential for display, keeping the last four characters."""
    if not secret:
        return ""
    if len(secret) <= 8:
        return "***"
    return f"***{secret[-4:]}"


@dataclass
class Config:
    """Client configuration loaded from environment variables.

    Set once at construction and read thereafter. Use Config.load() to
    create an instance with values from the environment, or build one
    directly when embedding the client in another application.

    Example:
        >>> config = Config.load()
        >>> if error := config.validate():
        ...     print(f"Config error: {error}")
    """

    # === Required ===
    openai_api_key: str = ""  # OPENAI_API_KEY
    pinecone_api_key: str = ""  # PINECONE_API_KEY
    pinecone_environment: str = ""  # PINECONE_ENVIRONMENT

    # === Chat Model ===
    model: str = DEFAULT_MODEL  # OPENAI_MODEL
    initial_prompt: str = ""  # INITIAL_PROMPT - accepted, not sent by get_completion_stream

    # === OpenAI Transport ===
    openai_timeout: float = 60.0  # OPENAI_TIMEOUT - seconds
    openai_max_retries: int = 2  # OPENAI_MAX_RETRIES - SDK-level retries

    # === Output Directories ===
    log_dir: Path = field(default_factory=lambda: Path("log"))  # LOG_DIR

    # === Logging Configuration ===
    log_level: str = "INFO"  # LOG_LEVEL - DEBUG, INFO, WARNING, ERROR
    log_backup_count: int = 30  # LOG_BACKUP_COUNT - Number of rotated logs to keep
    log_max_bytes: int = 0  # LOG_MAX_BYTES - Max file size (0 = time-based rotation)
    log_format: str = "text"  # LOG_FORMAT - 'text' or 'json' for structured logging

    # === Optional: Observability ===
    # Requires: pip install logfire
    enable_logfire: bool = False  # ENABLE_LOGFIRE - Enable distributed tracing
    logfire_token: str = ""  # LOGFIRE_TOKEN - Authentication token

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            openai_api_key=_env("OPENAI_API_KEY"),
            pinecone_api_key=_env("PINECONE_API_KEY"),
            pinecone_environment=_env("PINECONE_ENVIRONMENT"),
            model=_env("OPENAI_MODEL") or DEFAULT_MODEL,
            initial_prompt=_env("INITIAL_PROMPT"),
            openai_timeout=_env_float("OPENAI_TIMEOUT", 60.0),
            openai_max_retries=_env_int("OPENAI_MAX_RETRIES", 2),
            log_dir=Path(_env("LOG_DIR", "log")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_backup_count=_env_int("LOG_BACKUP_COUNT", 30),
            log_max_bytes=_env_int("LOG_MAX_BYTES", 0),
            log_format=_env("LOG_FORMAT", "text").lower(),
            enable_logfire=_env_bool("ENABLE_LOGFIRE", False),
            logfire_token=_env("LOGFIRE_TOKEN"),
        )

    def validate(self) -> str | None:
        """Validate configuration for required fields and valid values.

        Returns:
            Error message string if invalid, None if valid.
        """
        if not self.openai_api_key:
            return "OPENAI_API_KEY environment variable is required"
        if not self.pinecone_api_key:
            return "PINECONE_API_KEY environment variable is required"
        if not self.pinecone_environment:
            return "PINECONE_ENVIRONMENT environment variable is required"
        if not self.model:
            return "OPENAI_MODEL must not be empty"
        if self.openai_timeout <= 0:
            return "OPENAI_TIMEOUT must be positive"
        if self.openai_max_retries < 0:
            return "OPENAI_MAX_RETRIES must be non-negative"
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return f"Invalid LOG_LEVEL '{self.log_level}' - must be DEBUG, INFO, WARNING, ERROR, or CRITICAL"
        if self.log_format not in ("text", "json"):
            return f"Invalid LOG_FORMAT '{self.log_format}' - must be 'text' or 'json'"
        if self.log_backup_count < 0:
            return "LOG_BACKUP_COUNT must be non-negative"
        if self.log_max_bytes < 0:
            return "LOG_MAX_BYTES must be non-negative"
        return None

    def to_public_dict(self) -> dict[str, object]:
        """Return settings for display, with credentials masked."""
        return {
            "model": self.model,
            "initial_prompt": bool(self.initial_prompt),
            "openai_api_key": _redact(self.openai_api_key),
            "openai_timeout": self.openai_timeout,
            "openai_max_retries": self.openai_max_retries,
            "pinecone_api_key": _redact(self.pinecone_api_key),
            "pinecone_environment": self.pinecone_environment,
            "log_dir": str(self.log_dir),
            "log_level": self.log_level,
            "log_format": self.log_format,
            "enable_logfire": self.enable_logfire,
        }
