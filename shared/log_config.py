# shared/log_config.py
import logging

from shared.config import LOG_LEVEL, SQL_ECHO

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    if not SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
