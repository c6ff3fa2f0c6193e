"""Utility modules for ECFR Analyzer.

This package contains shared utilities that support the sync pipeline:

- config.py: SyncConfig dataclass with environment-variable defaults
- monitoring.py: Per-pass timing, throughput and degraded-entity tracking
- __init__.py: Centralized logging setup and the get_logger helper

Integration Points:
    - Every module obtains its logger through get_logger() or
      logging.getLogger(__name__); both resolve against the YAML config
    - The sync orchestrator reads SyncConfig for weights, retries,
      concurrency and storage location
    - The monitoring module summarizes each pass for operators

Python Learning Notes:
    - This __init__.py file serves as a package initializer and public API
    - The __all__ list at the bottom controls what gets imported with "from utils import *"
    - logging.config.dictConfig applies a whole logging setup from a dictionary
"""

import logging
import logging.config
from pathlib import Path
from typing import Optional

import yaml

from .config import SyncConfig, get_config, set_config
from .monitoring import PerformanceMonitor

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Global flag to track if logging has been configured
_logging_configured = False


def setup_logging(config_path: Optional[Path] = None) -> None:
    """Set up logging configuration from YAML file.

    This function configures the entire logging system using a YAML configuration
    file. It should be called once at process startup, before the first sync
    pass, typically from the module entry point (python -m ecfranalyzer).

    The logging configuration includes:
    - Console output for operators watching a pass
    - Rotating info, error and debug files under logs/
    - Module-specific levels (API and ingestion modules log at DEBUG)
    - httpx quieted to WARNING so per-request lines do not flood the output

    When no path is given and the default logging_config.yaml is not present
    (for example in a non-editable install), logging falls back to
    logging.basicConfig with the standard format. An explicit path that does
    not exist is an error.

    Python Learning Notes:
        - logging.config.dictConfig() applies a complete logging configuration
        - YAML files provide a clean way to define complex logging setups
        - Global configuration means all subsequent getLogger() calls use this setup

    Args:
        config_path (Optional[Path]): Path to the logging configuration YAML file.
            If None, defaults to 'logging_config.yaml' in the project root.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
        yaml.YAMLError: If the YAML configuration file is malformed.
    """
    global _logging_configured

    if _logging_configured:
        return

    explicit = config_path is not None
    if config_path is None:
        # Default to logging_config.yaml in project root
        project_root = Path(__file__).parent.parent.parent.parent
        config_path = project_root / "logging_config.yaml"

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Logging config file not found: {config_path}")
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        _logging_configured = True
        return

    # Ensure logs directory exists
    Path("logs").mkdir(parents=True, exist_ok=True)

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    logging.config.dictConfig(config)
    _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance using the centralized logging configuration.

    If setup_logging() hasn't been called yet, it is called with default
    settings first.

    Args:
        name (Optional[str]): Logger name to use. Pass __name__ for
            module-specific logging.

    Returns:
        logging.Logger: A configured logger instance.

    Example Usage:
        ```python
        from ecfranalyzer.utils import get_logger

        logger = get_logger(__name__)
        logger.info("Fetched 50 titles")
        ```
    """
    if not _logging_configured:
        setup_logging()

    return logging.getLogger(name or __name__)


__all__ = [
    "SyncConfig",
    "get_config",
    "set_config",
    "PerformanceMonitor",
    "setup_logging",
    "get_logger",
]
