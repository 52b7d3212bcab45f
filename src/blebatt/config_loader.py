#!/usr/bin/env python3
"""
Centralized configuration for blebatt.

Provides dataclass-based configuration with defaults.
Supports environment variable overrides for deployment flexibility.
"""
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8082
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass
class ServiceConfig:
    """HTTP service configuration."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_key: str = ""  # empty -> unauthenticated
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class BLEConfig:
    """Bluetooth Low Energy configuration."""

    # Applied by the command layer around a whole call, None disables it
    request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT


@dataclass
class LoggingConfig:
    """Logging configuration."""

    verbose: bool = False
    log_file: str | None = None


@dataclass
class Config:
    """Main blebatt configuration."""

    service: ServiceConfig = field(default_factory=ServiceConfig)
    ble: BLEConfig = field(default_factory=BLEConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Config":
        """
        Load configuration from file.

        Args:
            path: Path to config file. If None, uses environment-based default.

        Returns:
            Config instance with loaded values.
        """
        explicit = path is not None
        if path is None:
            path = cls._get_default_path()

        path = Path(path)

        if not path.exists():
            # Running without the system-wide file is the normal case
            log = logger.warning if explicit else logger.debug
            log("Config file not found: %s, using defaults", path)
            return cls._from_dict({})

        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        logger.info("Loaded config from %s", path)
        return cls._from_dict(data)

    @staticmethod
    def _get_default_path() -> Path:
        """Get default config path based on environment."""
        if os.getenv("BLEBATT_ENV") == "dev":
            logger.debug("DEV environment detected")
            return Path("/etc/blebatt/config.dev.json")
        return Path("/etc/blebatt/config.json")

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary (JSON data), applying env overrides."""
        origins = data.get("CORS_ORIGINS", ["*"])
        if isinstance(origins, str):
            origins = origins.split(",")

        service = ServiceConfig(
            host=os.getenv("BLEBATT_HOST", data.get("HOST", DEFAULT_HOST)),
            port=int(os.getenv("BLEBATT_PORT", data.get("PORT", DEFAULT_PORT))),
            api_key=os.getenv("BLEBATT_API_KEY", data.get("API_KEY", "")),
            cors_origins=origins,
        )

        ble = BLEConfig(
            request_timeout=_parse_timeout(
                os.getenv("BLEBATT_REQUEST_TIMEOUT",
                          data.get("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT))
            ),
        )

        log_cfg = LoggingConfig(
            verbose=bool(data.get("VERBOSE", False)),
            log_file=data.get("LOG_FILE"),
        )

        return cls(service=service, ble=ble, logging=log_cfg)


def _parse_timeout(value: Any) -> float | None:
    """Timeout from JSON or env: null, "", "none" or a non-positive number disable it."""
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in ("", "none", "null", "off"):
        return None
    timeout = float(value)
    return timeout if timeout > 0 else None
