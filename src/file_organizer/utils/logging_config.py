import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
):
    """Configure logging for the application."""
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    handlers = [logging.StreamHandler()]

    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))
        except OSError as e:
            # Console logging still works; report why the file is missing
            logging.getLogger(__name__).warning(f"Cannot write log file {log_path}: {e}")

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized. Log file: {log_file}")

    return logger
