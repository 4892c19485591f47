"""In-memory snapshot of a SQL Server database's tables, routines and constraints."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import pandas as pd

from dalmeta.core.query_executor import QueryExecutor
from dalmeta.models import SnapshotPhaseError, SqlColumn, SqlConstraint, SqlScript, SqlTable
from dalmeta.snapshot import queries
from dalmeta.snapshot.cleaning import remove_wrapping_characters
from dalmeta.utils.logger import setup_logging

logger = setup_logging(__name__)

DEFAULT_CONNECTION_STRING = (
    "Data Source=Localhost;Initial Catalog=Master;Integrated Security=SSPI;Connect Timeout=1;"
)

PHASE_COLUMNS = "columns"
PHASE_STORED_PROCEDURES = "stored_procedures"
PHASE_FUNCTIONS = "functions"
PHASE_CONSTRAINTS = "constraints"
PHASE_DEFAULT_VALUES = "default_values"


class Executor(Protocol):
    def execute_query(self, sql: str, parameters: Optional[Dict[str, Any]] = None) -> Optional[pd.DataFrame]:
        ...


ExecutorFactory = Callable[[str], Executor]


def _text(row: Dict[str, Any], key: str) -> str:
    """Read a text field; SQL NULL (None or NaN after to_dict) is an error."""
    value = row[key]
    if pd.isna(value):
        raise ValueError(f"{key} is NULL")
    return str(value)


class SqlDatabase:
    """Schema snapshot for one database, filled by :meth:`load_database_metadata`.

    Each call to ``load_database_metadata`` clears the snapshot and runs five
    phases in order: columns, stored procedures, functions, foreign-key
    constraints and column defaults. A failing phase is recorded in
    ``errors`` and the remaining phases still run, so the snapshot may be
    partially populated when the call returns ``False``.
    """

    def __init__(self, executor_factory: ExecutorFactory = QueryExecutor) -> None:
        self._executor_factory = executor_factory
        self._loaded = False
        self._reset()

    def _reset(self) -> None:
        self.name: str = ""
        self.tables: Dict[str, SqlTable] = {}
        self.stored_procedures: Dict[str, SqlScript] = {}
        self.functions: Dict[str, SqlScript] = {}
        self.constraints: Dict[str, SqlConstraint] = {}
        self.connection_string: str = ""
        self.errors: List[SnapshotPhaseError] = []
        self._loaded = False

    @property
    def formatted_name(self) -> str:
        return f"[{self.name}]"

    @property
    def is_consistent(self) -> bool:
        """True once a load finished without recording any error."""
        return self._loaded and not self.errors

    def load_database_metadata(self, database_name: str, connection_string: str) -> bool:
        """Load the snapshot for ``database_name``.

        Returns ``True`` when every phase succeeded. Raises ``ValueError`` only
        for an empty database name; every other failure is collected in
        ``errors``.
        """
        if not database_name:
            raise ValueError("Database name is null or empty")

        self._reset()

        self.name = database_name
        self.connection_string = connection_string or DEFAULT_CONNECTION_STRING

        logger.info("Loading metadata for database %s", self.formatted_name)
        phases: List[Tuple[str, Callable[[], str], Callable[[pd.DataFrame], None]]] = [
            (PHASE_COLUMNS, lambda: queries.table_data_sql(self.name), self._load_columns),
            (PHASE_STORED_PROCEDURES, lambda: queries.stored_procedures_sql(self.name), self._load_stored_procedures),
            (PHASE_FUNCTIONS, lambda: queries.functions_sql(self.name), self._load_functions),
            (PHASE_CONSTRAINTS, lambda: queries.constraints_sql(self.name), self._load_constraints),
            (PHASE_DEFAULT_VALUES, lambda: queries.default_values_sql(self.name), self._load_default_values),
        ]
        for phase, build_sql, handler in phases:
            self._run_phase(phase, build_sql, handler)

        self._loaded = True
        summary = self.summary()
        if self.errors:
            logger.warning("Loaded %s with %d error(s): %s", self.formatted_name, len(self.errors), summary)
        else:
            logger.info("Loaded %s: %s", self.formatted_name, summary)
        return not self.errors

    def summary(self) -> Dict[str, int]:
        return {
            "tables": len(self.tables),
            "columns": sum(len(table.columns) for table in self.tables.values()),
            "stored_procedures": len(self.stored_procedures),
            "functions": len(self.functions),
            "constraints": len(self.constraints),
            "errors": len(self.errors),
        }

    # ------------------------------------------------------------------
    # Phase plumbing
    # ------------------------------------------------------------------

    def _run_phase(
        self,
        phase: str,
        build_sql: Callable[[], str],
        handler: Callable[[pd.DataFrame], None],
    ) -> None:
        logger.debug("Starting phase %s", phase)
        try:
            executor = self._executor_factory(self.connection_string)
            frame = executor.execute_query(build_sql(), None)
            if frame is not None and not frame.empty and len(frame.columns) != 0:
                handler(frame)
        except SnapshotPhaseError as exc:
            self._record(exc)
        except Exception as exc:
            error = SnapshotPhaseError(phase, f"{type(exc).__name__}: {exc}")
            error.__cause__ = exc
            self._record(error)
        else:
            logger.debug("Finished phase %s", phase)

    def _record(self, error: SnapshotPhaseError) -> None:
        logger.warning("Phase %s failed: %s", error.phase, error.message)
        self.errors.append(error)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _load_columns(self, frame: pd.DataFrame) -> None:
        for row in frame.to_dict("records"):
            schema_name = _text(row, "SchemaName")
            table_name = _text(row, "TableName")
            column_name = _text(row, "ColumnName")

            table = self.tables.get(table_name)
            if table is None:
                table = SqlTable(database_name=self.name, schema=schema_name, name=table_name)
                self.tables[table_name] = table

            column = SqlColumn(
                schema=schema_name,
                table_name=table_name,
                name=column_name,
                data_type=_text(row, "DataType"),
                length=int(row["Length"]),
                precision=int(row["Precision"]),
                scale=int(row.get("Scale") or 0),
                is_nullable=bool(row["IsNullable"]),
                is_pk=bool(row["IsPK"]),
                is_identity=bool(row["IsIdentity"]),
                column_ordinal=int(row["ColumnOrdinal"]),
            )

            if column_name in table.columns:
                raise SnapshotPhaseError(
                    PHASE_COLUMNS, f"Column {column_name} already exists in table {table}"
                )
            table.columns[column_name] = column

    def _load_stored_procedures(self, frame: pd.DataFrame) -> None:
        self._merge_scripts(frame, self.stored_procedures)

    def _load_functions(self, frame: pd.DataFrame) -> None:
        self._merge_scripts(frame, self.functions)

    def _merge_scripts(self, frame: pd.DataFrame, target: Dict[str, SqlScript]) -> None:
        for row in frame.to_dict("records"):
            name = _text(row, "Name")
            body = _text(row, "Body")
            if name in target:
                target[name].append(body)
            else:
                target[name] = SqlScript(name=name, body=body)

    def _load_constraints(self, frame: pd.DataFrame) -> None:
        for row in frame.to_dict("records"):
            constraint = SqlConstraint(
                constraint_name=_text(row, "ConstraintName"),
                fk_table=_text(row, "FKTable"),
                fk_column=_text(row, "FKColumn"),
                pk_table=_text(row, "PKTable"),
                pk_column=_text(row, "PKColumn"),
            )
            if constraint.constraint_name in self.constraints:
                raise SnapshotPhaseError(
                    PHASE_CONSTRAINTS, f"Constraint {constraint.constraint_name} already exists."
                )
            self.constraints[constraint.constraint_name] = constraint

    def _load_default_values(self, frame: pd.DataFrame) -> None:
        for row in frame.to_dict("records"):
            table_name = _text(row, "TableName")
            column_name = _text(row, "ColumnName")
            table = self.tables.get(table_name)
            column = table.columns.get(column_name) if table else None
            if column is None:
                logger.debug("Skipping default for unknown column %s.%s", table_name, column_name)
                continue
            column.default_value = remove_wrapping_characters(_text(row, "DefaultValue"))


def load_snapshot(
    database_name: str,
    connection_string: str,
    executor_factory: ExecutorFactory = QueryExecutor,
) -> Tuple[SqlDatabase, bool]:
    """Build a fresh :class:`SqlDatabase` and load it; returns ``(snapshot, success)``."""
    snapshot = SqlDatabase(executor_factory=executor_factory)
    success = snapshot.load_database_metadata(database_name, connection_string)
    return snapshot, success


__all__ = ["SqlDatabase", "load_snapshot", "DEFAULT_CONNECTION_STRING"]
