# lineserver/utils/logger.py

import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(level: str | None = None) -> logging.Logger:
    """
    Configure the root logger once. Later calls only adjust the level.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()

    if not any(h.get_name() == "lineserver" for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler.set_name("lineserver")
        root.addHandler(handler)

    root.setLevel(getattr(logging, level_name, logging.INFO))
    return logging.getLogger("lineserver")
