import logging
import os
import sys

LOGGER_NAME = "ClipShift"


def setup_logger(level=None):
    """Configures the application logger once and returns it."""
    logger = logging.getLogger(LOGGER_NAME)

    # Level can be overridden from the environment (e.g. CLIPSHIFT_LOG_LEVEL=INFO)
    if level is None:
        level = os.environ.get("CLIPSHIFT_LOG_LEVEL", "DEBUG").upper()
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        logger.addHandler(handler)

    return logger


def get_logger(suffix):
    """Child logger, e.g. get_logger("ui") -> 'ClipShift.ui'."""
    return logging.getLogger(f"{LOGGER_NAME}.{suffix}")


logger = setup_logger()
