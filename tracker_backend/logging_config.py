# tracker_backend/logging_config.py
import logging

from .config.settings import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # SQL echo is too chatty for normal runs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
