import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure root logging with console and optional rotating file handlers."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers to honor verbosity changes
    for h in list(logger.handlers):
        logger.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3)
        fh.setLevel(level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)


def expand_home(path: str) -> str:
    """Expand a leading ``~/`` against HOME; anything else is returned as is."""
    if path.startswith("~/"):
        home = os.getenv("HOME")
        if home:
            return os.path.join(home, path[2:])
    return path
