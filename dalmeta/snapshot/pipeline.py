"""Load a schema snapshot for a database configured in config/database_config.json."""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Optional, Tuple

from dalmeta.config import DEFAULT_CONFIG_PATH, get_database_settings
from dalmeta.core.query_executor import QueryExecutor
from dalmeta.snapshot.loader import SqlDatabase
from dalmeta.utils.logger import cleanup_old_logs, setup_logging

logger = setup_logging(__name__)


def load_configured_snapshot(
    db_flag: str,
    *,
    config_path: Path = DEFAULT_CONFIG_PATH,
    snapshot: Optional[SqlDatabase] = None,
    log_retention_days: int = 30,
) -> Tuple[SqlDatabase, bool]:
    """Resolve settings for ``db_flag`` and load its metadata.

    Pass ``snapshot`` to reload an existing instance in place. Log files
    older than ``log_retention_days`` are removed before loading.
    """
    settings = get_database_settings(db_flag, config_path)
    removed = cleanup_old_logs(log_retention_days)
    if removed:
        logger.debug("Removed %d old log file(s)", removed)
    if snapshot is None:
        snapshot = SqlDatabase(
            executor_factory=partial(QueryExecutor, query_timeout=settings.query_timeout)
        )
    logger.info("Loading snapshot for %s (%s)", db_flag, settings.database_name)
    success = snapshot.load_database_metadata(settings.database_name, settings.connection_string)
    for error in snapshot.errors:
        logger.error("%s: %s", db_flag, error)
    return snapshot, success


__all__ = ["load_configured_snapshot"]
