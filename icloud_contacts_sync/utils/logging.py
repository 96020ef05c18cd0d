"""
Logging for icloud_contacts_sync.

Everything logs under the ``icloud_contacts_sync`` logger. ``setup_logging``
attaches a stderr handler and a dated log file in the configuration
directory's ``logs`` folder. The level can be raised or lowered through
environment variables without touching the config file.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from icloud_contacts_sync.utils.paths import resolve_config_dir

# Root logger name for the package hierarchy
LOGGER_NAME = "icloud_contacts_sync"

# Default log format
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Simplified format for console (less verbose)
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Verbose format (includes more details)
VERBOSE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)

# Date format for log timestamps
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log file name prefix, followed by the date
LOG_FILE_PREFIX = "icloud_contacts_sync_"

# Environment variable names
ENV_LOG_LEVEL = "ICLOUD_CONTACTS_SYNC_LOG_LEVEL"
ENV_DEBUG = "ICLOUD_CONTACTS_SYNC_DEBUG"
ENV_LOG_FILE = "ICLOUD_CONTACTS_SYNC_LOG_FILE"


class ColoredFormatter(logging.Formatter):
    """
    A logging formatter that adds ANSI color codes to log messages.

    Colors are only applied when output is to a terminal that supports them.
    """

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        """Check if the terminal supports colors."""
        if not hasattr(sys.stderr, "isatty") or not sys.stderr.isatty():
            return False

        # https://no-color.org/
        if os.environ.get("NO_COLOR"):
            return False

        term = os.environ.get("TERM", "")
        return term != "dumb"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional colors."""
        # Copy so other handlers see the uncolored record
        record = logging.makeLogRecord(record.__dict__)

        if self.use_colors and record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            record.levelname = f"{color}{record.levelname}{self.RESET}"
            record.msg = f"{color}{record.msg}{self.RESET}"

        return super().format(record)


def get_log_level_from_env() -> int:
    """
    Console level from the environment.

    A truthy ICLOUD_CONTACTS_SYNC_DEBUG wins. Otherwise
    ICLOUD_CONTACTS_SYNC_LOG_LEVEL is read by name; unknown names fall back
    to INFO.
    """
    if os.environ.get(ENV_DEBUG, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG

    name = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
    if name == "WARN":
        name = "WARNING"
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _dated_log_name() -> str:
    return f"{LOG_FILE_PREFIX}{datetime.now().strftime('%Y%m%d')}.log"


def get_log_file_path() -> Optional[Path]:
    """
    Get the log file path from environment or default location.

    The default location is a ``logs`` folder inside the configuration
    directory.

    Returns:
        Path to log file, or None if file logging is disabled
    """
    log_file = os.environ.get(ENV_LOG_FILE)
    if log_file is not None:
        if log_file.lower() in ("none", "disabled", ""):
            return None
        return Path(log_file)

    return resolve_config_dir() / "logs" / _dated_log_name()


def _console_handler(level: int, verbose: bool, use_colors: bool) -> logging.Handler:
    """Stderr handler; stdout stays free for command output."""
    fmt = VERBOSE_FORMAT if verbose else CONSOLE_FORMAT
    formatter_class = ColoredFormatter if use_colors else logging.Formatter
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter_class(fmt, DATE_FORMAT))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    """DEBUG-level handler writing to path, creating its folder."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(VERBOSE_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(
    level: Optional[int] = None,
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    log_file: Optional[Path] = None,
    enable_file_logging: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure the package logger.

    Replaces any handlers from an earlier call with a stderr handler and,
    unless disabled, a dated log file that always records DEBUG output.

    Args:
        level: Console level. Read from the environment when None.
        verbose: Force DEBUG and use the detailed console format.
        log_dir: Folder for the dated log file.
        log_file: Explicit log file; takes precedence over log_dir.
        enable_file_logging: Set False for console output only.
        use_colors: Color console levels when stderr is a terminal.

    Returns:
        The icloud_contacts_sync logger
    """
    if verbose:
        level = logging.DEBUG
    elif level is None:
        level = get_log_level_from_env()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False
    logger.addHandler(_console_handler(level, verbose, use_colors))

    if not enable_file_logging:
        return logger

    file_path: Optional[Path]
    if log_file:
        file_path = log_file
    elif log_dir:
        file_path = log_dir / _dated_log_name()
    else:
        file_path = get_log_file_path()
        if file_path is None:
            return logger

    try:
        logger.addHandler(_file_handler(file_path))
    except OSError as e:
        logger.warning(f"Could not open log file {file_path}: {e}")
    else:
        logger.debug(f"Log file: {file_path}")
    return logger


def cleanup_old_logs(log_dir: Path, keep_count: int = 10) -> int:
    """
    Clean up old log files, keeping only the most recent ones.

    Args:
        log_dir: Directory containing log files.
        keep_count: Number of log files to keep. Set to 0 to disable cleanup.

    Returns:
        Number of files deleted.
    """
    if keep_count <= 0 or not log_dir.exists():
        return 0

    sync_logs = sorted(
        log_dir.glob(f"{LOG_FILE_PREFIX}*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    deleted_count = 0
    for old_log in sync_logs[keep_count:]:
        try:
            old_log.unlink()
            deleted_count += 1
        except OSError as e:
            logging.getLogger(LOGGER_NAME).debug(f"Could not remove {old_log}: {e}")

    return deleted_count


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Returns a child logger of the icloud_contacts_sync logger hierarchy.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance for the module
    """
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def set_log_level(level: int) -> None:
    """
    Change the logging level at runtime.

    Args:
        level: New logging level (e.g., logging.DEBUG)
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers:
        # Keep file handler at DEBUG for complete logs
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def disable_logging() -> None:
    """Disable all logging output."""
    logging.getLogger(LOGGER_NAME).disabled = True


def enable_logging() -> None:
    """Re-enable logging output after it was disabled."""
    logging.getLogger(LOGGER_NAME).disabled = False


__all__ = [
    "setup_logging",
    "get_logger",
    "set_log_level",
    "disable_logging",
    "enable_logging",
    "cleanup_old_logs",
    "ColoredFormatter",
    "get_log_level_from_env",
    "get_log_file_path",
    "LOGGER_NAME",
    "DEFAULT_FORMAT",
    "CONSOLE_FORMAT",
    "VERBOSE_FORMAT",
    "DATE_FORMAT",
]
