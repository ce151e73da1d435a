"""Configuration management for tinycdp.

Supports multiple configuration sources with precedence:
CLI flags > Environment variables > Config file > Defaults

Usage:
    >>> config = Configuration()
    >>> config.load_from_file("~/.tinycdprc")
    >>> config.load_from_env()
    >>> config.merge(chrome_port=9333)  # CLI overrides
    >>> print(config.chrome_port)
    9333
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "~/.tinycdprc"
ENV_PREFIX = "TINYCDP_"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


class Configuration:
    """Configuration manager with layered precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (via merge method)
    2. Environment variables (TINYCDP_* prefix)
    3. Config file (~/.tinycdprc JSON)
    4. Default values

    Attributes:
        chrome_port: Remote debugging port for launched/attached browsers (default: 9222)
        chrome_path: Browser executable; None means auto-discover
        headless: Launch the browser headless (default: True)
        max_size: Maximum WebSocket message size in bytes (default: 2MB)
        navigation_timeout: Seconds to wait for a page load, 0 disables (default: 30.0)
        endpoint_retries: Attempts to reach /json/version after launch (default: 20)
        endpoint_retry_interval: Seconds between those attempts (default: 0.25)
        log_level: Logging level (default: "INFO")
        log_format: Log output format "text" or "json" (default: "text")
    """

    DEFAULTS = {
        "chrome_port": 9222,
        "chrome_path": None,
        "headless": True,
        "max_size": 2_097_152,  # 2MB
        "navigation_timeout": 30.0,
        "endpoint_retries": 20,
        "endpoint_retry_interval": 0.25,
        "log_level": "INFO",
        "log_format": "text",
    }

    ENV_CONVERTERS = {
        "chrome_port": int,
        "chrome_path": str,
        "headless": _parse_bool,
        "max_size": int,
        "navigation_timeout": float,
        "endpoint_retries": int,
        "endpoint_retry_interval": float,
        "log_level": str,
        "log_format": str,
    }

    def __init__(self):
        """Initialize configuration with default values."""
        self.chrome_port: int = self.DEFAULTS["chrome_port"]
        self.chrome_path: Optional[str] = self.DEFAULTS["chrome_path"]
        self.headless: bool = self.DEFAULTS["headless"]
        self.max_size: int = self.DEFAULTS["max_size"]
        self.navigation_timeout: float = self.DEFAULTS["navigation_timeout"]
        self.endpoint_retries: int = self.DEFAULTS["endpoint_retries"]
        self.endpoint_retry_interval: float = self.DEFAULTS["endpoint_retry_interval"]
        self.log_level: str = self.DEFAULTS["log_level"]
        self.log_format: str = self.DEFAULTS["log_format"]

    def load_from_file(self, file_path: str = DEFAULT_CONFIG_FILE) -> None:
        """Load configuration from JSON file.

        Args:
            file_path: Path to config file (typically ~/.tinycdprc)

        Note:
            Invalid JSON or missing file is ignored with a log line.
            Partial configs are merged with existing values.
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            logger.debug(f"Config file not found: {path}")
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config file {path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error loading config file {path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Config file {path} must contain a JSON object")
            return

        self._merge_dict(data)
        logger.info(f"Loaded configuration from {path}")

    def load_from_env(self) -> None:
        """Load configuration from environment variables.

        Each attribute maps to TINYCDP_<NAME>, e.g. TINYCDP_CHROME_PORT,
        TINYCDP_HEADLESS, TINYCDP_NAVIGATION_TIMEOUT.

        Invalid values are ignored with warning log.
        """
        for attr_name, type_converter in self.ENV_CONVERTERS.items():
            env_var = f"{ENV_PREFIX}{attr_name.upper()}"
            value = os.getenv(env_var)
            if value is None:
                continue
            try:
                converted_value = type_converter(value)
            except (ValueError, TypeError) as e:
                logger.warning(f"Invalid value for {env_var}: {value} ({e})")
                continue
            setattr(self, attr_name, converted_value)
            logger.debug(f"Loaded {attr_name}={converted_value} from {env_var}")

    def merge(self, **kwargs) -> None:
        """Merge CLI arguments into configuration (highest precedence).

        None values are skipped so unset flags never clobber lower layers.

        Example:
            >>> config.merge(chrome_port=9333, navigation_timeout=15.0)
        """
        self._merge_dict(kwargs)

    def _merge_dict(self, data: dict) -> None:
        for key, value in data.items():
            if key in self.DEFAULTS and value is not None:
                setattr(self, key, value)
                logger.debug(f"Set {key}={value}")

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {key: getattr(self, key) for key in self.DEFAULTS}

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()})"
