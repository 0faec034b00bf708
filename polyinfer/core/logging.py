import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# --- Constants ---
LOGGER_NAME = "polyinfer"
MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5
PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class JsonFormatter(logging.Formatter):
    """
    Formats log records as a JSON string.
    """
    def format(self, record):
        log_object = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_object['exc_info'] = self.formatException(record.exc_info)

        return json.dumps(log_object)

class EnvToggleFilter(logging.Filter):
    """Drops every record while POLYINFER_LOG is set to 'false'."""

    def filter(self, record):
        return os.environ.get("POLYINFER_LOG", "").strip().lower() != "false"

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Returns the package logger or one of its children, with the env toggle attached."""
    if not name or name == LOGGER_NAME:
        return logger
    if not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    child = logging.getLogger(name)
    if _env_filter not in child.filters:
        child.addFilter(_env_filter)
    return child

def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Configures the package logger.
    - Console: Human-readable plain text (JSON with json_format).
    - File: Machine-readable JSON, with rotation, only when log_file is given.
    """
    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())

    logger.setLevel(log_level)

    # --- Formatters ---
    plain_formatter = logging.Formatter(PLAIN_FORMAT)
    json_formatter = JsonFormatter()

    # Clear existing handlers to avoid duplicates
    if logger.handlers:
        logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(json_formatter if json_format else plain_formatter)
    logger.addHandler(console_handler)

    # --- Rotating File Handler (JSON) ---
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(json_formatter)
        logger.addHandler(file_handler)

    return logger

# --- Package Logger ---
# No handlers are installed on import; applications call setup_logging()
# or configure the "polyinfer" logger themselves.
_env_filter = EnvToggleFilter()
logger = logging.getLogger(LOGGER_NAME)
logger.addFilter(_env_filter)
logger.addHandler(logging.NullHandler())
