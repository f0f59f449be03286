"""Logging setup for the ``zenith`` logger hierarchy.

Modules log through ``logging.getLogger("zenith.<area>")``. Applications
that already configure logging can skip ``configure_logging`` entirely.
"""

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "info") -> logging.Logger:
    """Attach a stderr handler to the ``zenith`` logger at *level*.

    Idempotent: calling it twice does not add a second handler.
    """
    logger = logging.getLogger("zenith")
    logger.setLevel(level.upper())
    if not any(getattr(h, "_zenith_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._zenith_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
