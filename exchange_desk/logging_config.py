"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; this installs one
console handler on the root logger at the configured level. Called once from
the application factory.
"""

import logging
import logging.config

from exchange_desk.config import Settings


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    level = settings.LOG_LEVEL.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                # SQL echo is controlled by DEBUG through the engine, keep it quiet otherwise
                "sqlalchemy.engine": {"level": "INFO" if settings.DEBUG else "WARNING"},
            },
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", level)
