from __future__ import annotations

import logging
from logging import Logger

from pdfmerger.infrastructure.config import AppConfig

LOGGER_NAME = "pdfmerger"
LOG_FORMAT = "[%(levelname)s] %(asctime)s | %(name)s | %(message)s"


def configure_logging(config: AppConfig | None = None) -> Logger:
    """Attach a single stream handler to the package logger."""
    config = config or AppConfig.from_env()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False

    return logger
