from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pandas as pd
import pytest


class FakeExecutor:
    """Answers catalog queries by looking for a marker in the SQL text."""

    def __init__(self, connection_string: str, responses: Dict[str, object], calls: List[str]) -> None:
        self.connection_string = connection_string
        self.responses = responses
        self.calls = calls

    def execute_query(self, sql: str, parameters: Optional[dict] = None) -> Optional[pd.DataFrame]:
        self.calls.append(sql)
        phase = _phase_for(sql)
        response = self.responses.get(phase)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return None
        return pd.DataFrame(response)


def _phase_for(sql: str) -> str:
    if "[ColumnOrdinal]" in sql:
        return "columns"
    if "sys.objects.type = 'p'" in sql:
        return "stored_procedures"
    if "sys.objects.type = 'fn'" in sql:
        return "functions"
    if "[ConstraintName]" in sql:
        return "constraints"
    if "[DefaultValue]" in sql:
        return "default_values"
    raise AssertionError(f"Unexpected query: {sql}")


@pytest.fixture
def executor_factory() -> Callable[..., Callable[[str], FakeExecutor]]:
    """Build an executor factory from per-phase row lists (or exceptions)."""

    def _build(calls: Optional[List[str]] = None, **responses):
        recorded = calls if calls is not None else []
        return lambda connection_string: FakeExecutor(connection_string, responses, recorded)

    return _build


def column_row(table: str, column: str, ordinal: int = 1, **overrides) -> dict:
    row = {
        "SchemaName": "dbo",
        "TableName": table,
        "ColumnName": column,
        "DataType": "int",
        "Length": 4,
        "Precision": 10,
        "Scale": 0,
        "IsNullable": False,
        "IsPK": False,
        "IsIdentity": False,
        "ColumnOrdinal": ordinal,
    }
    row.update(overrides)
    return row
