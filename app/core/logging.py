import logging

from app.core.config import settings


def get_logger(name=__name__):
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    )
    return logging.getLogger(name)
