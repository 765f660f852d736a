import logging

from feeledger.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging() -> None:
    """Configure root logging once for the application process."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)

    # Never leak auth headers from low-level HTTP debug logs in production.
    if settings.is_production:
        for noisy_logger in ("httpx", "httpcore", "sqlalchemy.engine"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)
