import logging

LOGGER_NAME = "kcapfl"

logger = logging.getLogger(LOGGER_NAME)

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(name)s] %(levelname)s: %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)

logger.setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger, e.g. ``kcapfl.clustering``."""
    return logger.getChild(name)


def set_debug(enabled: bool) -> None:
    logger.setLevel(logging.DEBUG if enabled else logging.WARNING)
