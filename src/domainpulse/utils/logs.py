"""Logging setup for the CLI and the web server."""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from rich.logging import RichHandler

LOGGER_NAME = 'domainpulse'

# Libraries that log every request at INFO/DEBUG
NOISY_LOGGERS = ('httpx', 'httpcore', 'dns', 'werkzeug')


def setup_logging(cfg_logging: Optional[Dict[str, Any]] = None, verbose: bool = False) -> logging.Logger:
    """Configure the package logger once; later calls return it unchanged."""
    cfg_logging = cfg_logging or {}
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    level_name = 'DEBUG' if verbose else str(cfg_logging.get('level', 'WARNING')).upper()
    logger.setLevel(getattr(logging, level_name, logging.WARNING))

    console = RichHandler(show_path=False, rich_tracebacks=True)
    console.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(console)

    log_file = cfg_logging.get('file')
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(
            log_file,
            maxBytes=int(cfg_logging.get('rotate_max_mb', 5)) * 1024 * 1024,
            backupCount=int(cfg_logging.get('rotate_backups', 3)),
        )
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
