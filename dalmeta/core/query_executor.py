"""SQL execution utilities."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional
import re

import pandas as pd
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from db import database_manager
from dalmeta.utils.logger import setup_logging

logger = setup_logging(__name__)


class QueryExecutionError(RuntimeError):
    """Raised when the backing store rejects or fails a query."""


class QueryExecutor:
    """Runs catalog queries against one connection descriptor.

    Results come back as a ``pandas.DataFrame`` so callers can use named-column
    access on every row.
    """

    def __init__(self, connection_string: str, query_timeout: int = 30) -> None:
        self.connection_string = connection_string
        self.query_timeout = query_timeout

    def execute_query(self, sql: str, parameters: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
        try:
            with database_manager.get_connection(self.connection_string) as conn:
                result = conn.execution_options(timeout=self.query_timeout).execute(text(sql), parameters or {})
                columns: List[str] = list(result.keys())
                rows = result.fetchall()
        except SQLAlchemyError as exc:
            message = _short_error_message(exc)
            logger.warning("Query failed: %s", message)
            raise QueryExecutionError(message) from exc

        logger.debug("Query returned %d rows", len(rows))
        return pd.DataFrame(rows, columns=columns)


def _short_error_message(exc: Exception) -> str:
    """Return a concise, single-line error message with SQL removed.

    SQLAlchemy and driver exceptions often append the full SQL query in the
    exception string (e.g., "[SQL: SELECT ...]"). Clean those patterns and
    return a short text.
    """
    if exc is None:
        return "Unknown SQL error"
    try:
        exc_text = str(exc)
    except Exception:
        return exc.__class__.__name__

    # Remove bracketed SQL blocks: [SQL: SELECT ...]
    # Catalog queries contain bracketed identifiers, so match up to the trailing block
    exc_text = re.sub(
        r"\[SQL:.*?\](?=\s*(?:\[parameters:|\(Background on this error|\Z))",
        "",
        exc_text,
        flags=re.DOTALL | re.IGNORECASE,
    )
    # Remove SQLAlchemy/driver background references
    exc_text = re.sub(r"\(Background on this error.*", "", exc_text, flags=re.DOTALL | re.IGNORECASE)
    # Take the first meaningful line
    line = next((ln.strip() for ln in exc_text.splitlines() if ln.strip()), None)
    if not line:
        return exc.__class__.__name__
    # Limit length to 300 chars
    if len(line) > 300:
        line = line[:300] + "..."
    return line
