"""Bridge stdlib logging (httpx, tradestation) into loguru"""

import logging

from loguru import logger

_BRIDGED_LOGGERS = ("tradestation", "httpx")
_bridge_installed = False


class _LoguruHandler(logging.Handler):
    """Bridge stdlib logging into loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(
            level, record.getMessage()
        )


def install_logging_bridge() -> None:
    """Bridge stdlib logging used by httpx into loguru once."""
    global _bridge_installed
    if _bridge_installed:
        return

    handler = _LoguruHandler()
    for name in _BRIDGED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.setLevel(logging.DEBUG)
        std_logger.addHandler(handler)
        std_logger.propagate = False

    _bridge_installed = True
