"""
Environment variable loader for the probe configuration.

This module handles loading configuration from environment variables,
with type conversion, validation, and fallback to defaults.

Environment variables must be explicitly loaded using load_env_file() before
accessing any configuration functions.
"""

import os
from pathlib import Path
from typing import Optional, Type, TypeVar, cast

from dotenv import load_dotenv

from .constants import (
    DEFAULT_CLOSE_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_LIFETIME,
    DEFAULT_MOCK_QR_TEXT,
    DEFAULT_OPEN_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_URL,
)
from .models import (
    ApplicationConfig,
    LoggingConfig,
    LogLevel,
    MockServerConfig,
    ProbeConfig,
)

# Track if environment variables have been loaded
_env_loaded = False


def load_env_file(env_file: Optional[str] = None) -> None:
    """Load environment variables from a .env file.

    This function must be called before accessing any configuration functions.

    Args:
        env_file: Path to the .env file. If None, uses default behavior.
    """
    global _env_loaded
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    _env_loaded = True


def _check_env_loaded() -> None:
    """Check if environment variables have been loaded, raise error if not."""
    if not _env_loaded:
        raise RuntimeError(
            "Environment variables not loaded. Call load_env_file() before accessing configuration."
        )


T = TypeVar("T")


def safe_convert(value: Optional[str], target_type: Type[T], default: T) -> T:
    """Safely convert environment variable string to target type."""
    if value is None:
        return default

    try:
        if target_type == bool:
            return cast(T, value.lower() == "true")
        elif target_type == int:
            return cast(T, int(value))
        elif target_type == float:
            return cast(T, float(value))
        elif target_type == str:
            return cast(T, value)
        elif target_type == Path:
            return cast(T, Path(value))
        else:
            return default
    except (ValueError, TypeError):
        return default


def load_probe_config() -> ProbeConfig:
    """Load probe client configuration from environment variables."""
    _check_env_loaded()

    return ProbeConfig(
        url=os.getenv("CBSIM_PROBE_URL", DEFAULT_URL),
        lifetime=safe_convert(
            os.getenv("CBSIM_PROBE_LIFETIME"), float, DEFAULT_LIFETIME
        ),
        open_timeout=safe_convert(
            os.getenv("CBSIM_PROBE_OPEN_TIMEOUT"), float, DEFAULT_OPEN_TIMEOUT
        ),
        close_timeout=safe_convert(
            os.getenv("CBSIM_PROBE_CLOSE_TIMEOUT"), float, DEFAULT_CLOSE_TIMEOUT
        ),
    )


def load_mock_config() -> MockServerConfig:
    """Load mock control box configuration from environment variables."""
    _check_env_loaded()

    return MockServerConfig(
        host=os.getenv("CBSIM_MOCK_HOST", DEFAULT_HOST),
        port=safe_convert(os.getenv("CBSIM_MOCK_PORT"), int, DEFAULT_PORT),
        qr_text=os.getenv("CBSIM_MOCK_QR_TEXT", DEFAULT_MOCK_QR_TEXT),
    )


def load_logging_config() -> LoggingConfig:
    """Load logging configuration from environment variables."""
    _check_env_loaded()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = LogLevel.INFO
    try:
        log_level = LogLevel(log_level_str)
    except ValueError:
        pass

    return LoggingConfig(
        level=log_level,
        format=os.getenv(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        log_dir=Path(os.getenv("LOG_DIR", "logs")),
        log_filename=os.getenv("LOG_FILENAME", "cbsim_probe.log"),
        max_log_size=safe_convert(os.getenv("LOG_MAX_SIZE"), int, 10 * 1024 * 1024),
        backup_count=safe_convert(os.getenv("LOG_BACKUP_COUNT"), int, 5),
        console_output=safe_convert(os.getenv("LOG_CONSOLE_OUTPUT"), bool, True),
        file_output=safe_convert(os.getenv("LOG_FILE_OUTPUT"), bool, False),
    )


def load_application_config() -> ApplicationConfig:
    """Load complete application configuration from environment variables."""
    _check_env_loaded()

    config = ApplicationConfig(
        probe=load_probe_config(),
        mock=load_mock_config(),
        logging=load_logging_config(),
    )

    # Validate configuration and raise exceptions for critical errors
    validation_errors = config.validate()
    if validation_errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(
            f"  - {error}" for error in validation_errors
        )
        raise ValueError(error_msg)

    return config
