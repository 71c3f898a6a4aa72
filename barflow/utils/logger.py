"""
Engine logging: colored console output, daily log files and a separate
error log.

Lifecycle events (context creation, graph builds, sweeps, skipped bars)
are written as one line each via EngineLogger.event():

    [GRAPH_BUILT] | nodes=5 | outputs=3 | num_type=double

The per-bar hot path never logs; only exceptional bars do.
"""

import copy
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

RESET = "\033[0m"
BOLD = "\033[1m"

# Level -> ANSI color for console records
LEVEL_COLORS = {
    logging.DEBUG: "\033[96m",
    logging.INFO: "\033[92m",
    logging.WARNING: "\033[93m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: BOLD + "\033[91m",
}

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class ColoredFormatter(logging.Formatter):
    """Console formatter coloring level name and message by severity."""

    def format(self, record):
        # Colorize a copy; file handlers format the same record uncolored
        record = copy.copy(record)
        color = LEVEL_COLORS.get(record.levelno, "")
        if color:
            record.levelname = f"{color}{record.levelname}{RESET}"
            record.msg = f"{color}{record.msg}{RESET}"
        return super().format(record)


def format_event(action: str, **fields) -> str:
    """Render an event as '[ACTION] | key=value | ...'."""
    return " | ".join([f"[{action}]"] + [f"{key}={value}" for key, value in fields.items()])


class EngineLogger:
    """
    Process-wide logger for barflow.

    Two named loggers share the setup:
    - "barflow": everything at the configured level
    - "barflow.errors": ERROR and above, to errors_YYYYMMDD.log

    Both write to the console and to a daily file under log_dir.
    """

    _instance: Optional['EngineLogger'] = None
    _initialized: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, log_dir: str = "logs", log_level: str = "INFO"):
        if EngineLogger._initialized:
            return

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_level = log_level.upper()

        self.main_logger = self._configure("barflow", self.log_level, "engine")
        self.error_logger = self._configure("barflow.errors", "ERROR", "errors")

        EngineLogger._initialized = True

    def _configure(self, name: str, level: str, file_prefix: str) -> logging.Logger:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(getattr(logging, level))
        logger.propagate = False

        console = logging.StreamHandler()
        console.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(console)

        log_file = self.log_dir / f"{file_prefix}_{datetime.now():%Y%m%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

        return logger

    def info(self, msg: str, *args, **kwargs):
        self.main_logger.info(msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self.main_logger.debug(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.main_logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        """Log to the main log and the error log."""
        self.main_logger.error(msg, *args, **kwargs)
        self.error_logger.error(msg, *args, **kwargs)

    def event(self, action: str, level: int = logging.INFO, **fields):
        """
        Log a lifecycle event as a single structured line.

        Args:
            action: CONTEXT_CREATED, HISTORY_ENABLED, GRAPH_BUILT,
                SWEEP_STARTED, SWEEP_FINISHED, BAR_OUT_OF_ORDER
            level: logging level for the record
            **fields: key=value pairs appended to the line
        """
        self.main_logger.log(level, format_event(action, **fields))


_logger: Optional[EngineLogger] = None


def get_logger(log_dir: Optional[str] = None, log_level: Optional[str] = None) -> EngineLogger:
    """Get or create the global logger; unset arguments come from Config."""
    global _logger
    if _logger is None:
        if log_dir is None or log_level is None:
            from ..config import get_config
            log_cfg = get_config().log
            log_dir = log_dir or log_cfg.log_dir
            log_level = log_level or log_cfg.log_level
        _logger = EngineLogger(log_dir, log_level)
    return _logger


def setup_logger(log_dir: str = "logs", log_level: str = "INFO") -> EngineLogger:
    """(Re)initialize the global logger with explicit settings."""
    global _logger
    EngineLogger._initialized = False
    EngineLogger._instance = None
    _logger = EngineLogger(log_dir, log_level)
    return _logger
