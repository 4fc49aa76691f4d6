"""Logging infrastructure for the application.

Provides centralized logger configuration with file and console handlers.
"""

from __future__ import annotations

import logging
from pathlib import Path

from platyplex.config.config_loader import PROJECT_ROOT
from platyplex.config.service import get_config_service


def setup_logger(name: str) -> logging.Logger:
    """
    Set up and return a logger with file and console handlers.

    Logs are written to the configured logs directory (general.logs_dir) or
    PROJECT_ROOT/logs as a fallback. The console handler only shows warnings
    and errors, while the file handler captures INFO and above.

    Args:
        name: Name of the logger (typically __name__ from the calling module).

    Returns:
        Configured logger instance.
    """
    # Never let a broken config prevent logging; fall back to PROJECT_ROOT/logs.
    try:
        logs_dir_value = get_config_service().get_general_config().get("logs_dir")
        if not logs_dir_value:
            logs_dir = PROJECT_ROOT / "logs"
            log_file = logs_dir / "platyplex.log"
        else:
            logs_path = Path(logs_dir_value)
            if logs_path.suffix == ".log":
                log_file = logs_path
                logs_dir = logs_path.parent
            else:
                logs_dir = logs_path
                log_file = logs_dir / "platyplex.log"
    except Exception:
        logs_dir = PROJECT_ROOT / "logs"
        log_file = logs_dir / "platyplex.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
            )
            logger.addHandler(file_handler)
        except OSError:
            # Read-only checkout: console output only
            pass
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(console_handler)
    return logger
