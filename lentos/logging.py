"""Application-wide logging setup.

Call `configure_logging` once at startup; every module then uses
`logging.getLogger(__name__)`.
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # SQL echo is controlled by Settings.DB_ECHO, keep the pool quiet otherwise
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger(__name__).info("Logging initialized with level %s", level)
