"""
Structured logging for the marketplace service
"""
import logging
import sys
from pythonjsonlogger import jsonlogger

from marketplace.config import CommonSettings

# Loggers that drown out application records at DEBUG
NOISY_LOGGERS = ("sqlalchemy.engine", "passlib", "uvicorn.access")


def setup_logging(settings: CommonSettings) -> logging.Logger:
    """
    Configure the root logger from settings
    
    `log_format` selects JSON records (one object per line, tagged with the
    service name) or a plain text layout for local runs.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper()))
    root.handlers.clear()
    
    handler = logging.StreamHandler(sys.stdout)
    
    if settings.log_format.lower() == "json":
        formatter = jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level"
            },
            static_fields={
                "service": settings.service_name,
                "environment": settings.environment
            }
        )
        formatter.default_time_format = "%Y-%m-%dT%H:%M:%S"
        formatter.default_msec_format = "%s.%03dZ"
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    
    handler.setFormatter(formatter)
    root.addHandler(handler)
    
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    
    logging.info(f"Logging initialized for {settings.service_name} at level {settings.log_level}")
    
    return root
