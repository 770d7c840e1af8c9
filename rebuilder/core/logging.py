import logging
import sys
from rebuilder.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [job_id=%(job_id)s stage=%(stage)s] - %(message)s"

# Chatty third-party loggers kept at WARNING unless the root level is stricter
QUIET_LOGGERS = ("git", "celery", "kombu", "amqp")


class ContextFormatter(logging.Formatter):
    """Formatter that fills in job_id and stage for records logged outside an import."""
    def format(self, record):
        for name in ("job_id", "stage"):
            if not hasattr(record, name):
                setattr(record, name, "-")
        return super().format(record)


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    root_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logging.basicConfig(level=root_level, handlers=[handler], force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_level))
