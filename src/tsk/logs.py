"""
Logging for tsk.

Every record under the `tsk` logger goes to a detailed log file. The console
handler writes to stderr, so the task listing on stdout stays clean, and only
shows warnings unless TSK_DEBUG, TSK_LOG_LEVEL or `--verbose` ask for more.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = 'tsk'
LOG_FILE_NAME = 'tsk.log'
LOG_DIR_ENV_VAR = 'TSK_LOG_DIR'
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "tsk" / "logs"

FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'
DEBUG_CONSOLE_FORMAT = '%(levelname)-8s [%(name)s] %(message)s'


def console_level() -> int:
    """Console level from the environment: TSK_DEBUG wins over TSK_LOG_LEVEL, default WARNING."""
    if os.getenv('TSK_DEBUG', '').lower() in ('1', 'true', 'yes'):
        return logging.DEBUG

    name = os.getenv('TSK_LOG_LEVEL', '').strip().upper()
    if not name:
        return logging.WARNING
    level = logging.getLevelName(name)
    # Unknown names come back as the string "Level <name>"
    return level if isinstance(level, int) else logging.WARNING


def _console_formatter(level: int) -> logging.Formatter:
    return logging.Formatter(DEBUG_CONSOLE_FORMAT if level <= logging.DEBUG else CONSOLE_FORMAT)


def _is_console(handler: logging.Handler) -> bool:
    # FileHandler is itself a StreamHandler
    return isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)


def setup_logging(level: Optional[int] = None,
                  log_dir: Optional[Union[Path, str]] = None) -> logging.Logger:
    """
    (Re)configure the `tsk` logger.

    Args:
        level: Console level. Read from the environment when not given.
        log_dir: Directory of the log file. Falls back to $TSK_LOG_DIR, then
            ~/.local/share/tsk/logs. If it cannot be created only the console
            handler is installed.
    """
    if level is None:
        level = console_level()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Handlers do the filtering
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(_console_formatter(level))
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    log_dir = Path(log_dir or os.getenv(LOG_DIR_ENV_VAR) or DEFAULT_LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding='utf-8')
    except OSError as e:
        logger.warning(f"File logging disabled, cannot use {log_dir}: {e}")
    else:
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


def set_console_level(level: int):
    """Change what reaches the console. The log file keeps everything."""
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        if _is_console(handler):
            handler.setLevel(level)
            handler.setFormatter(_console_formatter(level))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for a specific module."""
    if name:
        return logging.getLogger(f'{LOGGER_NAME}.{name}')
    return logging.getLogger(LOGGER_NAME)


setup_logging()
