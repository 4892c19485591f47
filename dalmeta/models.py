"""Data models shared by the metadata loader: settings and schema descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DatabaseSettings(BaseModel):
    """Configuration options for a single database target."""

    connection_string: str = Field(..., min_length=1)
    database_name: str = Field(..., min_length=1, description="Catalog to load metadata from")
    description: Optional[str] = None
    query_timeout: int = Field(30, ge=1, description="Query timeout in seconds")


class ApplicationConfig(BaseModel):
    """Top-level configuration: one entry per database flag."""

    databases: Dict[str, DatabaseSettings]


# ---------------------------------------------------------------------
# Schema descriptors populated by SqlDatabase.load_database_metadata
# ---------------------------------------------------------------------


@dataclass(slots=True)
class SqlColumn:
    """One column of a user table.

    The owning table is referenced by name only; resolve it through
    ``SqlDatabase.tables[column.table_name]``.
    """

    schema: str
    table_name: str
    name: str
    data_type: str
    length: int
    precision: int
    is_nullable: bool
    is_pk: bool
    is_identity: bool
    column_ordinal: int
    scale: int = 0
    default_value: Optional[str] = None


@dataclass(slots=True)
class SqlTable:
    database_name: str
    schema: str
    name: str
    columns: Dict[str, SqlColumn] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.schema}.{self.name}"

    @property
    def primary_keys(self) -> List[SqlColumn]:
        """Primary-key columns in ordinal order."""
        pk_columns = [column for column in self.columns.values() if column.is_pk]
        return sorted(pk_columns, key=lambda column: column.column_ordinal)

    def __str__(self) -> str:
        return self.full_name


@dataclass(slots=True)
class SqlScript:
    """A stored procedure or function definition."""

    name: str
    body: str

    def append(self, fragment: str) -> None:
        self.body += fragment


@dataclass(slots=True, frozen=True)
class SqlConstraint:
    """A single foreign-key edge: fk_table.fk_column -> pk_table.pk_column."""

    constraint_name: str
    fk_table: str
    fk_column: str
    pk_table: str
    pk_column: str


class SnapshotPhaseError(Exception):
    """Failure captured while running one loading phase."""

    def __init__(self, phase: str, message: str) -> None:
        super().__init__(f"[{phase}] {message}")
        self.phase = phase
        self.message = message
