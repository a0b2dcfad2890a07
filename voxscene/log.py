"""Logging configuration for voxscene."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# handlers added by setup_logging, so they can be closed again
_handlers: list[logging.Handler] = []


def shutdown_logging() -> None:
    """Remove and close the handlers installed by setup_logging."""
    root_logger = logging.getLogger()
    while _handlers:
        handler = _handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()


def setup_logging(log_dir: Optional[str] = None, log_level: int = logging.INFO) -> Optional[Path]:
    """Setup logging configuration.

    Args:
        log_dir: Directory to store a log file in; no file is written if None
        log_level: Logging level (default: INFO)

    Returns:
        Path of the log file, if one was created

    Always installs a console handler writing to stderr. With a log_dir, a
    file handler writing to a timestamped file in log_dir is added too.
    Handlers from an earlier call are closed first; handlers installed by
    anything else are left alone.
    """
    shutdown_logging()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)
    _handlers.append(console_handler)

    if log_dir is None:
        return None

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_path / f"voxscene_{timestamp}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    file_handler.setLevel(log_level)
    root_logger.addHandler(file_handler)
    _handlers.append(file_handler)

    root_logger.debug("Log file: %s", log_file)
    return log_file
