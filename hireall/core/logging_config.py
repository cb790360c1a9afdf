"""Process-wide logging setup, called once at startup."""

import logging

from hireall.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    settings = get_settings()
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # pymongo heartbeat chatter is noise at INFO
    logging.getLogger("pymongo").setLevel(logging.WARNING)
