import logging

from receipt_tracker.core.config import LOG_LEVEL, SQL_ECHO

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    if not SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
