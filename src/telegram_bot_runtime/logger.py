import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from telegram_bot_runtime.runtime_config import get_data_dir

LOG_FILE_NAME = "bot.log"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", log_dir: Optional[Path] = None) -> Path:
    """
    Configure root logging: rich output on stderr and a plain log file.

    Args:
        level: Logging level name for the console handler.
        log_dir: Directory for the log file, defaults to the XDG data directory.

    Returns:
        Path of the log file.
    """
    log_dir = log_dir or get_data_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    # Re-running setup (e.g. in tests) must not stack handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level.upper())

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    root.setLevel(logging.DEBUG)
    root.addHandler(console_handler)
    root.addHandler(file_handler)

    # requests/urllib3 log every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return log_file
