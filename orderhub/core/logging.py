import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from orderhub.core.config import settings


def setup_logging() -> None:
    logger = logging.getLogger()
    logger.setLevel(settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    formatter = JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        static_fields={"service": settings.service_name}
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
