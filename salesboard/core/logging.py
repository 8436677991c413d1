"""
Logging setup for the webhook receiver and live feed.

Everything goes to stdout in one pipe-separated format. The HTTP client
libraries log each outbound request at INFO, which would repeat every token
exchange and PayPal verification call, so they are held at WARNING unless the
service itself runs at DEBUG.
"""

import logging
import sys
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_CHATTY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO", quiet: Iterable[str] = _CHATTY_LOGGERS) -> None:
    """Configure root logging and tone down outbound request chatter."""
    root_level = logging.getLevelName(level.upper())
    logging.basicConfig(level=root_level, format=LOG_FORMAT, stream=sys.stdout)
    logging.getLogger().setLevel(root_level)

    library_level = logging.DEBUG if root_level == logging.DEBUG else logging.WARNING
    for name in quiet:
        logging.getLogger(name).setLevel(library_level)


__all__ = ["LOG_FORMAT", "configure_logging"]
