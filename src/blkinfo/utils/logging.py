import logging
import sys
from pathlib import Path
from typing import Optional

from blkinfo.utils import config as config_utils

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DIR = config_utils.config_dir()
LOG_FILE = LOG_DIR / "blkinfo.log"

_active_log_file: Optional[Path] = None


def setup_logging(level=logging.WARNING):
    """Set up logging to stderr and file.

    stdout is reserved for the rendered device record.
    """
    global _active_log_file

    logger = logging.getLogger(__name__)

    handlers = [logging.StreamHandler(sys.stderr)]

    log_file = LOG_FILE
    file_handler = None

    try:
        if not LOG_DIR.exists():
            LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a")
    except OSError as exc:
        # Fall back to a local directory if the config location is not writable.
        fallback_dir = Path.cwd() / ".blkinfo_logs"
        try:
            fallback_dir.mkdir(parents=True, exist_ok=True)
            log_file = fallback_dir / "blkinfo.log"
            file_handler = logging.FileHandler(log_file, mode="a")
            logger.warning(
                "log_file_fallback primary=%s fallback=%s error=%s",
                str(LOG_FILE),
                str(log_file),
                str(exc),
            )
        except OSError as fallback_exc:
            logger.warning(
                "log_file_disabled primary=%s fallback_dir=%s error=%s",
                str(LOG_FILE),
                str(fallback_dir),
                str(fallback_exc),
            )
            file_handler = None

    if file_handler is not None:
        handlers.append(file_handler)
        _active_log_file = Path(log_file)
    else:
        _active_log_file = None

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    if file_handler is not None:
        logger.debug("Logging initialized (log_file=%s)", str(log_file))
    else:
        logger.debug("Logging initialized (no file log; console only)")


def active_log_file() -> Optional[Path]:
    """Return the file currently receiving log records, if any."""
    return _active_log_file


def active_log_dir() -> Optional[Path]:
    return _active_log_file.parent if _active_log_file is not None else None


def get_logger(name: str):
    """Get a logger instance."""
    return logging.getLogger(name)
