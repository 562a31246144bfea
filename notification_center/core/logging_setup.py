import logging
import sys

from notification_center.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

logger = logging.getLogger("notification_center")


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure root logging once for the process and return the package logger."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    return logger
