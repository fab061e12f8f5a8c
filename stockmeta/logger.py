import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger
from .config import settings

def setup_logger(name: str = "stockmeta", level: Optional[str] = None) -> logging.Logger:
    """
    JSON logs on stdout for the service and the CLI.
    Module loggers under `stockmeta.*` propagate here, so only this one gets a handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            rename_fields={"levelname": "level"},
        )
    )
    logger.addHandler(handler)
    logger.propagate = False

    return logger

logger = setup_logger()
