"""Logging configuration helpers."""

import logging


def configure_logging(level: str = "INFO") -> None:
    """Send ``bakery_ledger`` records to stderr at the configured level.

    Repeated calls only adjust the level, so app factories can call this
    freely in tests.
    """
    logger = logging.getLogger("bakery_ledger")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
