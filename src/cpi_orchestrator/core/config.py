"""
Core configuration.

The CPI passes its own JSON config document. The parts that concern the core
live under three keys:

{
  "retry": {"max_attempts": 10, "initial_delay_seconds": 1.0,
            "backoff_multiplier": 2.0, "max_delay_seconds": 32.0},
  "http": {"timeout_seconds": 60, "verify_ssl": true},
  "logging": {"level": "INFO", "destination": "stdout", "log_dir": "./logs",
              "filename": "cpi.log", "renderer": "console"}
}

Every key is optional. Unknown keys are ignored so the CPI can keep its other
settings in the same document. CPI_LOG_LEVEL overrides logging.level.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from cpi_orchestrator.core.errors import ConfigError

LOG_LEVEL_ENV = "CPI_LOG_LEVEL"

_LOG_DESTINATIONS = ("stdout", "file", "both")
_LOG_RENDERERS = ("console", "json")


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry policy.

    max_attempts
    Total number of attempts, including the first one.

    initial_delay_seconds
    Delay after the first failed attempt.

    backoff_multiplier
    Each following delay is multiplied by this factor.

    max_delay_seconds
    Upper bound for a single delay.
    """

    max_attempts: int = 10
    initial_delay_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay_seconds: float = 32.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigError("retry.max_attempts must be at least 1")
        if self.initial_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ConfigError("retry delays can not be negative")
        if self.backoff_multiplier < 1:
            raise ConfigError("retry.backoff_multiplier must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt, 1 based."""
        delay = self.initial_delay_seconds
        for _ in range(attempt - 1):
            if delay >= self.max_delay_seconds:
                break
            delay *= self.backoff_multiplier
        return min(delay, self.max_delay_seconds)


@dataclass(frozen=True)
class HttpConfig:
    """
    Settings for the default urllib http client.

    verify_ssl
    Set to False for controllers and hosts with self signed certificates.
    """

    timeout_seconds: int = 60
    verify_ssl: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging settings consumed by core.logging.setup_logging.

    destination is stdout, file or both.
    renderer is console for key value lines or json for one object per line.
    """

    level: str = "INFO"
    destination: str = "stdout"
    log_dir: str = "./logs"
    filename: str = "cpi.log"
    renderer: str = "console"

    def __post_init__(self) -> None:
        if self.destination not in _LOG_DESTINATIONS:
            raise ConfigError(f"logging.destination must be one of {list(_LOG_DESTINATIONS)}")
        if self.renderer not in _LOG_RENDERERS:
            raise ConfigError(f"logging.renderer must be one of {list(_LOG_RENDERERS)}")


@dataclass(frozen=True)
class CoreConfig:
    retry: RetryConfig = field(default_factory=RetryConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CoreConfig":
        if not isinstance(data, Mapping):
            raise ConfigError("config must be an object")

        retry_obj = _section(data, "retry")
        http_obj = _section(data, "http")
        logging_obj = _section(data, "logging")

        retry = RetryConfig(
            max_attempts=_int(retry_obj, "retry", "max_attempts", RetryConfig.max_attempts),
            initial_delay_seconds=_float(
                retry_obj, "retry", "initial_delay_seconds", RetryConfig.initial_delay_seconds
            ),
            backoff_multiplier=_float(
                retry_obj, "retry", "backoff_multiplier", RetryConfig.backoff_multiplier
            ),
            max_delay_seconds=_float(
                retry_obj, "retry", "max_delay_seconds", RetryConfig.max_delay_seconds
            ),
        )

        http = HttpConfig(
            timeout_seconds=_int(http_obj, "http", "timeout_seconds", HttpConfig.timeout_seconds),
            verify_ssl=_bool(http_obj, "http", "verify_ssl", HttpConfig.verify_ssl),
        )

        level = os.environ.get(LOG_LEVEL_ENV) or _str(
            logging_obj, "logging", "level", LoggingConfig.level
        )
        logging_cfg = LoggingConfig(
            level=level.upper(),
            destination=_str(logging_obj, "logging", "destination", LoggingConfig.destination),
            log_dir=_str(logging_obj, "logging", "log_dir", LoggingConfig.log_dir),
            filename=_str(logging_obj, "logging", "filename", LoggingConfig.filename),
            renderer=_str(logging_obj, "logging", "renderer", LoggingConfig.renderer),
        )

        return cls(retry=retry, http=http, logging=logging_cfg)


def load_config(path: Path) -> CoreConfig:
    """Load a CoreConfig from a JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config file {path} is not valid json: {exc}") from exc
    return CoreConfig.from_dict(data)


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{key} must be an object")
    return value


def _int(obj: Mapping[str, Any], section: str, key: str, default: int) -> int:
    value = obj.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{section}.{key} must be an integer")
    return value


def _float(obj: Mapping[str, Any], section: str, key: str, default: float) -> float:
    value = obj.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{section}.{key} must be a number")
    return float(value)


def _bool(obj: Mapping[str, Any], section: str, key: str, default: bool) -> bool:
    value = obj.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{section}.{key} must be a boolean")
    return value


def _str(obj: Mapping[str, Any], section: str, key: str, default: str) -> str:
    value = obj.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{section}.{key} must be a non empty string")
    return value
