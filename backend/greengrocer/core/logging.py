"""Structured JSON logging configuration."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from greengrocer.core.config import settings
from greengrocer.middleware.request_id import RequestIdFilter


def setup_logging() -> None:
    """Configure JSON structured logging for production, human-readable for dev."""
    if getattr(settings, 'APP_ENV', 'development') == "production":
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(request_id)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        logging.root.handlers = [handler]
        logging.root.setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s [%(request_id)s] %(message)s",
        )
    for handler in logging.root.handlers:
        handler.addFilter(RequestIdFilter())
    # SQL echo is noisy next to the import summaries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
