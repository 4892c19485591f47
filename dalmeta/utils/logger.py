# Structured logging
import logging
import os
import time
from datetime import datetime

# --- Setup Log Directory ---
from pathlib import Path

# Compute project root locally to avoid import cycles with `dalmeta.config`
PROJECT_ROOT = Path(__file__).resolve().parents[2]
LOG_DIR = os.getenv("DALMETA_LOG_DIR") or os.path.join(str(PROJECT_ROOT), "Log")
os.makedirs(LOG_DIR, exist_ok=True)

LOG_FORMAT = "%(asctime)s - %(module)s:%(lineno)d - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_daily_log_path() -> str:
    """Generate a log file path with the current date"""
    today = datetime.now().strftime("%Y-%m-%d")
    return os.path.join(LOG_DIR, f"app_{today}.log")


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        env_level = os.getenv("ENV_LOG_LEVEL")
        level = env_level if env_level else logging.DEBUG
    # logging.getLevelName returns an int when given a known name like 'INFO'
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        return logging.DEBUG
    return resolved


def setup_logging(name: str = __name__, level: int | str | None = None) -> logging.Logger:
    """Setup structured logging with daily log files and noise suppression.

    Args:
        name: The module name to attach to the logger.
        level: Optional logging level (int or string like 'INFO').
            If None, uses the ENV_LOG_LEVEL environment variable or defaults to DEBUG.
    """
    log_path = get_daily_log_path()

    logger = logging.getLogger(name)
    resolved_level = _resolve_level(level)
    logger.setLevel(resolved_level)
    logger.propagate = False  # prevent bubbling to root logger

    # Clear old handlers
    if logger.handlers:
        for h in logger.handlers[:]:
            logger.removeHandler(h)

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    # File handler
    try:
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(resolved_level)
        logger.addHandler(file_handler)
    except OSError:
        # read-only checkouts still get console output
        pass

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(resolved_level)
    logger.addHandler(console_handler)

    # Suppress noisy third-party logs globally
    noisy_libs = [
        "sqlalchemy.engine", "sqlalchemy.pool", "pyodbc", "urllib3", "asyncio",
    ]
    for lib in noisy_libs:
        logging.getLogger(lib).setLevel(logging.WARNING)

    return logger


def cleanup_old_logs(days_to_keep: int = 30) -> int:
    """Delete log files older than specified days. Returns the number removed."""
    now = time.time()
    removed = 0
    for filename in os.listdir(LOG_DIR):
        if filename.startswith("app_") and filename.endswith(".log"):
            file_path = os.path.join(LOG_DIR, filename)
            try:
                if os.path.getmtime(file_path) < now - (days_to_keep * 86400):
                    os.remove(file_path)
                    removed += 1
                    logging.info(f"Deleted old log file: {filename}")
            except OSError:
                continue
    return removed
