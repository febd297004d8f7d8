"""Configuration for the feed client."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .backoff import RetryPolicy
from .errors import ConfigurationError


def _optional_bound(raw: str) -> Optional[int]:
    """0 or empty means unbounded."""
    value = int(raw) if raw.strip() else 0
    return value if value > 0 else None


@dataclass
class FeedConfig:
    """
    Configuration container for one client run.

    Loaded from environment variables with sensible defaults.
    """
    # Feed server
    host: str = "127.0.0.1"
    port: int = 3000

    # Transport
    connect_timeout_seconds: float = 10.0
    receive_timeout_seconds: Optional[float] = None  # None = wait forever
    read_size: int = 64 * 1024

    # Resend retries
    retry_delay_seconds: float = 1.0
    retry_backoff_multiplier: float = 1.0  # 1.0 = fixed delay
    retry_max_delay_seconds: float = 60.0
    max_retries: Optional[int] = None  # None = retry forever
    max_recovery_passes: Optional[int] = None

    # Output
    output_path: Path = Path("orders.json")
    sort_by_sequence: bool = False

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "FeedConfig":
        """Load configuration from environment variables."""
        receive_timeout = float(os.getenv("RECEIVE_TIMEOUT_SECONDS", "0"))

        return cls(
            host=os.getenv("FEED_HOST", "127.0.0.1"),
            port=int(os.getenv("FEED_PORT", "3000")),
            connect_timeout_seconds=float(os.getenv("CONNECT_TIMEOUT_SECONDS", "10.0")),
            receive_timeout_seconds=receive_timeout if receive_timeout > 0 else None,
            read_size=int(os.getenv("READ_SIZE", str(64 * 1024))),
            retry_delay_seconds=float(os.getenv("RETRY_DELAY_SECONDS", "1.0")),
            retry_backoff_multiplier=float(os.getenv("RETRY_BACKOFF_MULTIPLIER", "1.0")),
            retry_max_delay_seconds=float(os.getenv("RETRY_MAX_DELAY_SECONDS", "60.0")),
            max_retries=_optional_bound(os.getenv("MAX_RETRIES", "0")),
            max_recovery_passes=_optional_bound(os.getenv("MAX_RECOVERY_PASSES", "0")),
            output_path=Path(os.getenv("OUTPUT_PATH", "orders.json")),
            sort_by_sequence=os.getenv("SORT_BY_SEQUENCE", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            delay_seconds=self.retry_delay_seconds,
            multiplier=self.retry_backoff_multiplier,
            max_delay_seconds=self.retry_max_delay_seconds,
            max_retries=self.max_retries,
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.host:
            raise ConfigurationError("host must not be empty")

        if self.port < 1 or self.port > 65535:
            raise ConfigurationError("port must be between 1 and 65535")

        if self.connect_timeout_seconds <= 0:
            raise ConfigurationError("connect_timeout_seconds must be positive")

        if self.receive_timeout_seconds is not None and self.receive_timeout_seconds <= 0:
            raise ConfigurationError("receive_timeout_seconds must be positive when set")

        if self.read_size <= 0:
            raise ConfigurationError("read_size must be positive")

        if self.retry_delay_seconds < 0:
            raise ConfigurationError("retry_delay_seconds must not be negative")

        if self.retry_backoff_multiplier < 1.0:
            raise ConfigurationError("retry_backoff_multiplier must be at least 1.0")

        if self.max_retries is not None and self.max_retries < 0:
            raise ConfigurationError("max_retries must not be negative")

        if self.max_recovery_passes is not None and self.max_recovery_passes < 1:
            raise ConfigurationError("max_recovery_passes must be at least 1")
