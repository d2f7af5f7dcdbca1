"""
Configuration models for the probe.

This module defines dataclasses for the configuration domains of the probe:
the client itself, the mock control box and logging.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List

from cbsim_probe.config.constants import (
    DEFAULT_CLOSE_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_LIFETIME,
    DEFAULT_MOCK_QR_TEXT,
    DEFAULT_OPEN_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_URL,
)


class LogLevel(Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ProbeConfig:
    """Probe client settings."""

    url: str = DEFAULT_URL
    lifetime: float = DEFAULT_LIFETIME
    open_timeout: float = DEFAULT_OPEN_TIMEOUT
    close_timeout: float = DEFAULT_CLOSE_TIMEOUT


@dataclass
class MockServerConfig:
    """Mock control box settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    qr_text: str = DEFAULT_MOCK_QR_TEXT


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_filename: str = "cbsim_probe.log"
    max_log_size: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    console_output: bool = True
    file_output: bool = False


@dataclass
class ApplicationConfig:
    """Master configuration containing all domain configs."""

    probe: ProbeConfig = field(default_factory=ProbeConfig)
    mock: MockServerConfig = field(default_factory=MockServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.probe.lifetime <= 0:
            errors.append("Probe lifetime must be positive")

        if self.probe.open_timeout <= 0:
            errors.append("Probe open timeout must be positive")

        # Port 0 asks the OS for an ephemeral port
        if self.mock.port < 0 or self.mock.port > 65535:
            errors.append("Mock server port must be between 0 and 65535")

        return errors
