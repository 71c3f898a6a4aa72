"""Configuration module."""

from .config import Config, EngineConfig, LogConfig, get_config

__all__ = ["Config", "EngineConfig", "LogConfig", "get_config"]
