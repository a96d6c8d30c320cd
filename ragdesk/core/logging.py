import logging
import logging.config

from ragdesk.core.config import settings


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger for the API or worker process."""
    loglevel = (level or settings.LOG_LEVEL).upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "level": loglevel,
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": loglevel,
            },
        }
    )

    # Suppress per-request client logs unless in debug mode
    noisy_level = logging.DEBUG if loglevel == "DEBUG" else logging.WARNING
    for name in ("httpx", "openai", "botocore", "urllib3"):
        logging.getLogger(name).setLevel(noisy_level)
