"""Logger utilities for dnsdog."""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, Optional, Union

import colorlog

from .. import constants


def setup_logger(
    level: str = "INFO",
    module_levels: Optional[Dict[str, str]] = None,
    log_file: Optional[Union[str, Path]] = None,
    log_format: Optional[str] = None
):
    """
    Configures the root logger for dnsdog with colored console output.

    Args:
        level: Name of the root logging level (DEBUG, INFO, ...)
        module_levels: Dictionary mapping module names to log levels
        log_file: Optional file path to write logs to
        log_format: Custom log format string
    """
    logger = logging.getLogger()
    logger.setLevel(constants.LOG_LEVELS.get(level.upper(), logging.INFO))

    # Prevent duplicate handlers if this function is called multiple times
    if logger.handlers:
        _apply_module_levels(module_levels)
        return

    _setup_console_handler(logger, log_format)

    if log_file:
        _setup_file_handler(logger, log_file, log_format)

    _apply_module_levels(module_levels)


def _setup_console_handler(logger: logging.Logger, log_format: Optional[str] = None):
    """Setup console handler with color support."""
    # Respect NO_COLOR env var (https://no-color.org/)
    use_colors = sys.stderr.isatty() and not os.environ.get("NO_COLOR")

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.NOTSET)

    if use_colors:
        if log_format is None:
            log_format = '%(log_color)s[%(levelname).4s]%(reset)s %(cyan)s%(name)s%(reset)s: %(message)s'

        formatter = colorlog.ColoredFormatter(
            log_format,
            log_colors={
                'DEBUG': 'cyan',
                'INFO': 'green',
                'WARNING': 'yellow',
                'ERROR': 'red',
                'CRITICAL': 'red,bg_white',
            },
            reset=True,
            style='%'
        )
    else:
        if log_format is None:
            log_format = '[%(levelname).4s] %(name)s: %(message)s'
        formatter = logging.Formatter(log_format)

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _setup_file_handler(logger: logging.Logger, log_file: Union[str, Path], log_format: Optional[str] = None):
    """Setup file handler for logging to file."""
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setLevel(logging.NOTSET)

    if log_format is None:
        log_format = '%(asctime)s [%(levelname).4s] %(name)s: %(message)s'

    formatter = logging.Formatter(log_format, datefmt='%Y-%m-%d %H:%M:%S')
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _apply_module_levels(module_levels: Optional[Dict[str, str]]):
    """Apply per-module logger levels from mapping or env var DNSDOG_LOG_LEVELS.

    module_levels format: {"dnsdog.watcher": "DEBUG", "dnsdog.cache": "INFO"}
    Env var example: DNSDOG_LOG_LEVELS="watcher=DEBUG,cache=INFO"
    """
    if module_levels is None:
        module_levels = parse_module_levels(os.environ.get(constants.LOG_LEVELS_ENV, ""))

    for name, lvl_str in module_levels.items():
        lvl = constants.LOG_LEVELS.get(lvl_str.upper())
        if lvl is None:
            # Unknown level names are ignored rather than aborting startup
            continue
        logging.getLogger(_normalize_module_name(name)).setLevel(lvl)


def parse_module_levels(value: str) -> Dict[str, str]:
    """Parse "traffic=DEBUG,cache=INFO" into a name -> level mapping."""
    levels = {}
    for pair in value.split(','):
        pair = pair.strip()
        if not pair or '=' not in pair:
            continue
        name, lvl = pair.split('=', 1)
        levels[name.strip()] = lvl.strip().upper()
    return levels


def _normalize_module_name(name: str) -> str:
    """Normalize provided module name with alias and auto-prefix.

    - If name is an alias, expand to full module path.
    - If name ends with '.*', treat it as base logger (strip the wildcard).
    - If name does not start with 'dnsdog.' and begins with a known top module, prefix 'dnsdog.'.
    """
    if name in constants.LOG_ALIAS_MAP:
        return constants.LOG_ALIAS_MAP[name]
    if name.endswith('.*'):
        name = name[:-2]
    if not name.startswith('dnsdog.'):
        first = name.split('.', 1)[0]
        if first in constants.KNOWN_TOP_MODULES:
            name = f'dnsdog.{name}'
    return name


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__ from the calling module

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
