# src/nicpk/log.py
import logging

_HANDLER_NAME = "nicpk-stream"


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """
    Attach one stream handler to the package logger. Calling it again only
    updates the level. The root logger is left alone.
    """
    logger = logging.getLogger("nicpk")
    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        ))
        logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
