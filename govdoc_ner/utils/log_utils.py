import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from govdoc_ner.config import config

LOGGER_NAME = "govdoc_ner"

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
CONSOLE_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)s %(name)s %(funcName)s:%(lineno)d: %(message)s'
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _rotating_file(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(log_level: str = config.LOG_LEVEL,
                  log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Configure the package logger: stderr console, app.log and error.log.

    Calling it again replaces the handlers of the previous call.
    """
    log_dir = Path(log_dir) if log_dir is not None else config.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # stdout is reserved for command output
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))

    logger.addHandler(console)
    logger.addHandler(_rotating_file(log_dir / "app.log", logging.DEBUG))
    logger.addHandler(_rotating_file(log_dir / "error.log", logging.ERROR))

    # Request lines from the HTTP client are noise at INFO
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging initialized - Level: {log_level}")
    return logger
