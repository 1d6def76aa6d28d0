"""Logging setup for the server process."""
import logging

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``esbook`` logger (idempotent)."""
    logger = logging.getLogger("esbook")
    logger.setLevel(level)

    if not any(getattr(h, "_esbook_handler", False) for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(LOG_FORMAT))
        sh._esbook_handler = True
        logger.addHandler(sh)

    return logger
