"""Library logging setup."""

import logging
import sys
from datetime import datetime, timezone

from .config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s.%(funcName)s] - %(message)s"


class UTCMicrosecondFormatter(logging.Formatter):
    """Formatter with UTC timestamps to the microsecond, matching feed times.

    Example output:
        2017-09-02 17:05:49.250114Z - gdaxclient - INFO - [public.connect] - REST client connected to https://api.exchange.coinbase.com
    """

    def formatTime(self, record, datefmt=None):
        ct = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ct.strftime(datefmt or "%Y-%m-%d %H:%M:%S.%fZ")


def setup_logger(name: str = "gdaxclient", level: str | None = None) -> logging.Logger:
    """Return the named logger, attaching a stderr handler on first use.

    Args:
        name: Logger name
        level: Level name, defaults to Config.LOG_LEVEL
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(UTCMicrosecondFormatter(LOG_FORMAT))
        logger.addHandler(handler)

    level_name = (level or Config.LOG_LEVEL).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    return logger


logger = setup_logger()
