"""Logging configuration for the photonctl package."""
import logging
from typing import Optional

from photonctl.config import Config

def setup_logging(debug_mode: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger for a CLI run.

    Args:
        debug_mode: Log at DEBUG level and keep HTTP library chatter
        log_file: Optional path; when given, records are also written there

    Returns:
        The ``photonctl`` logger
    """
    log_level = logging.DEBUG if debug_mode else getattr(logging, Config.LOG_LEVEL, logging.INFO)
    formatter = logging.Formatter(Config.LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # Disable debug logging for noisy libraries
    if not debug_mode:
        logging.getLogger('urllib3').setLevel(logging.WARNING)

    return logging.getLogger("photonctl")
