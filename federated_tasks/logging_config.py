"""Logging configuration for the federation layer."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = logging.INFO


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure application logging.

    Installs a stdout handler on the root logger and quiets the database
    driver loggers, which are chatty at INFO.
    """
    logging.basicConfig(
        level=(level or "").upper() or LOG_LEVEL,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    logging.getLogger("federated_tasks").setLevel((level or "").upper() or LOG_LEVEL)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured")
