"""Logging setup shared by the CLI and the HTTP surface.

Every record is timestamped, appended to the persistent migration log and
echoed to the terminal.
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Configure the root logger.

    Args:
        log_file: Persistent log appended to on every run (skipped when None;
            an unwritable file leaves terminal output only).
        verbose: Force DEBUG level, otherwise LOG_LEVEL from the environment
            (default INFO).
    """
    if verbose:
        level = logging.DEBUG
    else:
        env_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        level = getattr(logging, env_level, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    file_error = None
    if log_file:
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as e:
            file_error = e

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(level)

    if file_error is not None:
        logging.getLogger(__name__).warning("Cannot write log file %s: %s", log_file, file_error)
