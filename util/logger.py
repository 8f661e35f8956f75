# util/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from config.settings import settings

# Optional: capture warnings.* into logging
logging.captureWarnings(True)

_NOISY = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "redis": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.INFO,
}


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so file handlers still see the plain levelname
        colored = logging.makeLogRecord(record.__dict__)
        lvl = record.levelname
        colored.levelname = f"{self.COLORS.get(lvl, self.RESET)}{lvl}{self.RESET}"
        return super().format(colored)


def _level() -> int:
    return getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)


def init_logger() -> logging.Logger:
    """
    Idempotent logger init:
    - Always logs to stdout (colored levelnames).
    - Writes to LOG_DIR/LOG_FILE_NAME only when settings.LOG_TO_FILE is True,
      rotated by size (LOG_MAX_BYTES / LOG_BACKUP_COUNT).
    - Respects settings.LOG_LEVEL; journal sinks log through their module
      loggers (service.*, repository.*) and inherit it.
    """
    root = logging.getLogger()
    if getattr(root, "_gateway_inited", False):
        return logging.getLogger(settings.LOGGER_NAME)

    level = _level()
    root.setLevel(level)

    # Clear any default handlers to avoid duplicates
    for h in list(root.handlers):
        root.removeHandler(h)

    text_fmt = "%(asctime)s %(levelname)s %(name)s - %(message)s"
    date_fmt = "%Y-%m-%dT%H:%M:%S%z"

    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(ColoredFormatter(text_fmt, datefmt=date_fmt))
    root.addHandler(ch)

    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        fh = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(text_fmt, datefmt=date_fmt))
        root.addHandler(fh)

    for name, lib_level in _NOISY.items():
        logging.getLogger(name).setLevel(lib_level)

    root._gateway_inited = True  # type: ignore[attr-defined]
    logger = logging.getLogger(settings.LOGGER_NAME)
    logger.debug(
        "logger.ready level=%s file=%s", logging.getLevelName(level), settings.LOG_TO_FILE
    )
    return logger
