"""
Configuration management for the indicator engine.
Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


VALID_NUM_TYPES = ("double", "decimal")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EngineConfig:
    """
    Engine-wide settings.

    Attributes:
        num_type: Numeric representation for new graphs ("double" or "decimal").
        history_window: Default history cache window for new contexts
            (0 disables history).
        max_workers: Thread pool size for parameter sweeps.
    """
    num_type: str = "double"
    history_window: int = 0
    max_workers: int = 4

    def __post_init__(self):
        self.num_type = self.num_type.strip().lower()
        if self.num_type not in VALID_NUM_TYPES:
            raise ValueError(
                f"BARFLOW_NUM_TYPE must be one of {list(VALID_NUM_TYPES)}, got '{self.num_type}'"
            )
        if self.history_window < 0:
            raise ValueError(
                f"BARFLOW_HISTORY_WINDOW must be >= 0, got {self.history_window}"
            )
        if self.max_workers < 1:
            raise ValueError(f"BARFLOW_MAX_WORKERS must be >= 1, got {self.max_workers}")


@dataclass
class LogConfig:
    """Logging configuration."""
    log_dir: str = "logs"
    log_level: str = "INFO"

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"BARFLOW_LOG_LEVEL must be one of {list(VALID_LOG_LEVELS)}, got '{self.log_level}'"
            )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None


class Config:
    """
    Central configuration manager.

    Loads configuration from environment variables and provides
    typed access to all settings.
    """

    _instance: Optional['Config'] = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, env_file: str = ".env"):
        if self._initialized:
            return

        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path, override=True)

        self.engine = self._load_engine_config()
        self.log = self._load_log_config()

        self._initialized = True

    def _load_engine_config(self) -> EngineConfig:
        return EngineConfig(
            num_type=os.getenv("BARFLOW_NUM_TYPE", "double"),
            history_window=_int_env("BARFLOW_HISTORY_WINDOW", 0),
            max_workers=_int_env("BARFLOW_MAX_WORKERS", 4),
        )

    def _load_log_config(self) -> LogConfig:
        return LogConfig(
            log_dir=os.getenv("BARFLOW_LOG_DIR", "logs"),
            log_level=os.getenv("BARFLOW_LOG_LEVEL", "INFO"),
        )

    def reload(self, env_file: str = ".env") -> None:
        """Re-read settings from the environment."""
        self._initialized = False
        self.__init__(env_file)

    def summary(self) -> dict:
        """Settings as a flat dict for display."""
        return {
            "num_type": self.engine.num_type,
            "history_window": self.engine.history_window,
            "max_workers": self.engine.max_workers,
            "log_dir": self.log.log_dir,
            "log_level": self.log.log_level,
        }


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
