"""Process-wide logging setup."""

import logging

LOG_FORMAT = "%(levelname)s %(name)s %(message)s"


def configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
