from __future__ import annotations
import logging
from typing import Optional


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure root logging for the application.

    Drops any handlers installed by an earlier `basicConfig` and
    reconfigures the root logger at `level` (a level name such as
    ``"DEBUG"``). Unknown or missing level names fall back to WARNING.
    Returns a module logger for the caller.
    """
    log_level = logging.WARNING
    if isinstance(level, str):
        numeric = getattr(logging, level.upper(), None)
        if isinstance(numeric, int):
            log_level = numeric

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=log_level, format='%(asctime)s %(levelname)s [%(name)s]: %(message)s')
    logger = logging.getLogger(__name__)

    # Keep known noisy libraries quiet by default
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logger.debug("Log level set to: %s", logging.getLevelName(log_level))

    return logger
