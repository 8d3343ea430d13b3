import logging
import os

LEVEL_ENV = 'SHOTBAR_LOG_LEVEL'

# Modules whose progress messages are read by the person running a capture.
# Everything else under shotbar is library code and stays quiet by default.
USER_FACING_MODULES = ('shotbar.cli', 'shotbar.capture.engine')


def default_level(name: str) -> int:
    for module in USER_FACING_MODULES:
        if name == module or name.startswith(module + '.'):
            return logging.INFO
    return logging.WARNING


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    fallback = default_level(name)
    level_name = os.getenv(LEVEL_ENV, '').strip().upper()
    level = logging.getLevelName(level_name) if level_name else fallback
    if not isinstance(level, int):
        level = fallback

    logger.setLevel(level)
    return logger
