import logging
import logging.config
import os
from datetime import datetime
from app.core.config import settings

# Rotating file per stream: (directory under LOG_DIR, level, formatter)
FILE_STREAMS = {
    "app": ("app", None, "detailed"),
    "error": ("error", "ERROR", "detailed"),
    "access": ("access", "INFO", "access"),
}


def _file_handler(stream: str, current_date: str) -> dict:
    directory, level, formatter = FILE_STREAMS[stream]
    path = os.path.join(settings.LOG_DIR, directory)
    os.makedirs(path, exist_ok=True)
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level or settings.LOG_LEVEL,
        "formatter": formatter,
        "filename": os.path.join(path, f"{stream}-{current_date}.log"),
        "maxBytes": 10485760,  # 10MB
        "backupCount": 10,
    }


def setup_logging():
    """Configure console and rotating file logging for the API process"""
    current_date = datetime.now().strftime("%Y-%m-%d")

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.LOG_LEVEL,
            "formatter": "default",
            "stream": "ext://sys.stdout",
        },
    }
    for stream in FILE_STREAMS:
        handlers[f"{stream}_file"] = _file_handler(stream, current_date)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "format": "%(asctime)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {
                "level": settings.LOG_LEVEL,
                "handlers": ["console", "app_file", "error_file"],
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False,
            },
            # Per-request noise from the sheets client and the ORM
            "httpx": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    })

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {settings.LOG_LEVEL} into {settings.LOG_DIR}/")
    logger.info(f"Outlets whitelisted: {len(settings.OUTLETS)}")
