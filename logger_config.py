import logging
import sys
from pathlib import Path

LOGGER_NAME = "upload_server"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logger(logs_dir: Path = Path("logs")):
    """Return the server's operator logger, configuring it on first use.

    Diagnostics go to stdout at INFO and to ``logs/upload_server.log`` at
    DEBUG. Upload records are not written here; they go to the upload log.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logs_dir.mkdir(exist_ok=True)
    logger.setLevel(logging.DEBUG)

    file_handler = logging.FileHandler(logs_dir / f"{LOGGER_NAME}.log")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    ))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    return logger


def set_console_level(level: str):
    """Apply the configured console verbosity; the file log keeps everything."""
    if level.upper() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(LOG_LEVELS)}")
    for handler in setup_logger().handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level.upper())
