from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from .settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(settings: Settings | None = None, level: str | None = None) -> None:
    """
    Console logging for host applications embedding the cache.

    Does nothing when the root logger already has handlers, so hosts that
    configure logging themselves keep their setup.
    """
    settings = settings or get_settings()
    logging.captureWarnings(True)

    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel((level or settings.log_level).upper())

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    root.addHandler(sh)

    if settings.log_file:
        fh = RotatingFileHandler(settings.log_file, maxBytes=2_000_000, backupCount=2, encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)
