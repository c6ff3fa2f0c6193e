"""Configuration management for ECFR Analyzer.

This module defines the settings for a synchronization pass: where the eCFR
API lives, how patiently to talk to it, how many titles to process at once,
the weights used to allocate title words to agencies, and where to keep the
results. Every field has a sensible default that can be overridden by an
environment variable or by constructing SyncConfig with explicit values.

Environment Variables:
    ECFR_BASE_URL: eCFR API root (default: https://www.ecfr.gov)
    ECFR_USER_AGENT: User-Agent header sent with every request
    ECFR_REQUEST_TIMEOUT: Per-request timeout in seconds (default: 30)
    ECFR_CACHE_TTL: Response cache time-to-live in seconds (default: 3600)
    ECFR_MAX_ATTEMPTS: Total attempts per request, including the first (default: 3)
    ECFR_RETRY_BACKOFF: Base backoff delay in seconds (default: 1.0)
    ECFR_MAX_CONCURRENCY: Titles fetched in parallel (default: 6)
    ECFR_PARENT_WEIGHT: Share of a title allocated to a top-level agency (default: 0.10)
    ECFR_CHILD_WEIGHT: Share of a title allocated to a child agency (default: 0.05)
    ECFR_DB_PATH: SQLite file holding titles, agencies and history
    ECFR_SYNTHETIC_DAYS: Length of the synthetic fallback history (default: 30)
    ECFR_FALLBACK_DATE: Content date used when the latest issue date is unknown

A .env file in the working directory is loaded by the module entry point
(python -m ecfranalyzer) through python-dotenv before the config is built.

Python Learning Notes:
    - field(default_factory=lambda: ...) reads the environment when an
      instance is created, not when the module is imported
    - __post_init__ runs right after the generated __init__, which makes it
      the natural place for validation
    - ValueError is raised for bad values to fail fast at startup
"""

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


@dataclass
class SyncConfig:
    """
    Configuration settings for an ECFR Analyzer synchronization pass.

    Attributes:
        base_url: Root URL of the eCFR API, without trailing slash.
        user_agent: User-Agent header identifying this client.
        request_timeout: Timeout in seconds for each HTTP request.
        cache_ttl: Seconds a successful response stays fresh in the cache.
        max_attempts: Total attempts per request before giving up.
        retry_backoff: Base delay; attempt n waits retry_backoff * n seconds.
        max_concurrency: Size of the title worker pool.
        parent_weight: Fraction of a title's words credited to a top-level
            agency per reference.
        child_weight: Fraction credited to a child agency per reference.
        db_path: Path of the SQLite metrics database.
        synthetic_days: Days of history produced by the fallback generator.
        fallback_date: Content date used when no issue date is known.

    Example:
        >>> config = SyncConfig(max_concurrency=4, retry_backoff=0.0)
        >>> config.parent_weight
        0.1
    """

    base_url: str = field(
        default_factory=lambda: os.getenv("ECFR_BASE_URL", "https://www.ecfr.gov")
    )
    user_agent: str = field(
        default_factory=lambda: os.getenv("ECFR_USER_AGENT", "ECFRAnalyzer/0.1.0")
    )
    request_timeout: float = field(
        default_factory=lambda: _env_float("ECFR_REQUEST_TIMEOUT", "30")
    )

    # Caching and retry
    cache_ttl: float = field(default_factory=lambda: _env_float("ECFR_CACHE_TTL", "3600"))
    max_attempts: int = field(default_factory=lambda: _env_int("ECFR_MAX_ATTEMPTS", "3"))
    retry_backoff: float = field(
        default_factory=lambda: _env_float("ECFR_RETRY_BACKOFF", "1.0")
    )

    # Worker pool
    max_concurrency: int = field(
        default_factory=lambda: _env_int("ECFR_MAX_CONCURRENCY", "6")
    )

    # Allocation weights
    parent_weight: float = field(
        default_factory=lambda: _env_float("ECFR_PARENT_WEIGHT", "0.10")
    )
    child_weight: float = field(
        default_factory=lambda: _env_float("ECFR_CHILD_WEIGHT", "0.05")
    )

    # Storage
    db_path: str = field(
        default_factory=lambda: os.getenv("ECFR_DB_PATH", "ecfr_metrics.db")
    )

    # Fallback
    synthetic_days: int = field(
        default_factory=lambda: _env_int("ECFR_SYNTHETIC_DAYS", "30")
    )
    fallback_date: str = field(
        default_factory=lambda: os.getenv("ECFR_FALLBACK_DATE", "2023-01-01")
    )

    def validate(self) -> bool:
        """
        Validate the configuration settings.

        Returns:
            True if configuration is valid, raises ValueError otherwise.

        Raises:
            ValueError: If configuration parameters are invalid.
        """
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.cache_ttl < 0:
            raise ValueError("cache_ttl must be >= 0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.retry_backoff < 0:
            raise ValueError("retry_backoff must be >= 0")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        for name, weight in (
            ("parent_weight", self.parent_weight),
            ("child_weight", self.child_weight),
        ):
            if not 0 <= weight <= 1:
                raise ValueError(f"{name} must be between 0 and 1")
        if self.synthetic_days < 1:
            raise ValueError("synthetic_days must be at least 1")
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.base_url = self.base_url.rstrip("/")
        self.validate()


_config: Optional[SyncConfig] = None


def get_config() -> SyncConfig:
    """
    Return the process-wide SyncConfig, creating it on first use.

    The instance is built lazily so that environment variables loaded from a
    .env file before the first call are honored.
    """
    global _config
    if _config is None:
        _config = SyncConfig()
    return _config


def set_config(config: Optional[SyncConfig]) -> None:
    """
    Replace the process-wide SyncConfig.

    Passing None clears it so the next get_config() rebuilds from the
    environment; tests use this to isolate settings.
    """
    global _config
    _config = config
