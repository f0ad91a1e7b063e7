# utils/logger.py
import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_DIR = "logs"
LOG_NAME = "yt-audio-streamer.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

# yt-dlp and its HTTP stack are chatty at INFO
NOISY_LOGGERS = ["yt_dlp", "urllib3.connectionpool"]


def setup_logging(
        log_dir: str = LOG_DIR,
        level: str = "INFO",
        backup_count: int = 14,
        console: Optional[Console] = None,
) -> str:
    """Configure the root logger: rotating file + rich console. Returns the log path."""
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, LOG_NAME)
    log_level = getattr(logging, str(level).upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clean old handlers (avoid duplicates when called twice)
    if logger.hasHandlers():
        logger.handlers.clear()

    # --- FILE HANDLER (rotates daily) ---
    file_handler = TimedRotatingFileHandler(
        log_path,
        when="midnight",
        interval=1,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # --- CONSOLE HANDLER (shares the console with the progress bar) ---
    console_handler = RichHandler(
        console=console,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.debug(f"[LOG] Logging initialized → {log_path}")
    return log_path
