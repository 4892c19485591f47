"""Catalog query templates for SQL Server metadata.

Every query is prefixed with ``USE [<database>]`` and returns the column
aliases the loader reads (``TableName``, ``ColumnName``, ``Body`` ...).
"""

from __future__ import annotations

# Types the column loader does not handle.
UNSUPPORTED_TYPES = ("sysname", "timestamp", "hierarchyid", "geometry", "geography")


def _use(database_name: str) -> str:
    return " USE [" + database_name + "]"


def table_data_sql(database_name: str) -> str:
    """Columns of every user table, with primary-key and identity flags.

    Ordered by schema, table and column ordinal.
    """
    unsupported = ",".join(f"'{name}'" for name in UNSUPPORTED_TYPES)
    lines = [
        _use(database_name),
        " SELECT sys.schemas.[Name] AS [SchemaName],",
        " sys.Objects.[Name] AS [TableName],",
        " sys.columns.[Name] AS [ColumnName],",
        " sys.types.[name] AS [DataType],",
        " sys.columns.[max_length] AS [Length],",
        " sys.columns.[precision] AS [Precision],",
        " sys.columns.[scale] AS [Scale],",
        " sys.columns.[is_nullable] AS [IsNullable],",
        " CAST(ISNULL(PrimaryKeys.IsPK,0) AS BIT) AS [IsPK],",
        " sys.columns.[is_identity] AS [IsIdentity],",
        " sys.columns.column_id AS [ColumnOrdinal]",
        " FROM sys.objects ",
        " INNER JOIN sys.columns ON sys.objects.object_id = sys.columns.object_id",
        " INNER JOIN sys.types ON sys.columns.system_type_id = sys.types.system_type_id",
        " INNER JOIN sys.schemas on sys.objects.schema_id = sys.schemas.schema_id",
        " LEFT JOIN",
        " ( ",
        " SELECT DISTINCT C.[tableName] AS [TableName],",
        " K.[columnName] AS [ColumnName],",
        " 1 AS [IsPK] ",
        " FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE K",
        " INNER JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS C ON K.tableName = C.tableName",
        " WHERE C.CONSTRAINT_TYPE = 'PRIMARY KEY'",
        " ) PrimaryKeys ON PrimaryKeys.[TableName] = sys.Objects.[Name] AND PrimaryKeys.[ColumnName] = sys.columns.[Name]",
        " WHERE sys.objects.type = 'U'",
        f" AND sys.types.[name] NOT IN ({unsupported})",
        " AND sys.types.is_user_defined = 0",
        " ORDER BY sys.schemas.[Name], sys.objects.[name], sys.columns.[column_id]",
    ]
    return "".join(line + "\n" for line in lines)


def _routines_sql(database_name: str, object_type: str) -> str:
    # syscomments splits long definitions into fragments ordered by colid
    return (
        _use(database_name)
        + " SELECT sys.objects.name AS [Name],"
        " syscomments.text AS [Body]"
        " FROM sys.objects"
        " INNER JOIN syscomments ON sys.objects.object_id = syscomments.id"
        f" WHERE sys.objects.type = '{object_type}'"
        " AND sys.objects.is_ms_shipped = 0"
        " ORDER BY sys.objects.name, syscomments.colid"
    )


def stored_procedures_sql(database_name: str) -> str:
    return _routines_sql(database_name, "p")


def functions_sql(database_name: str) -> str:
    return _routines_sql(database_name, "fn")


def constraints_sql(database_name: str) -> str:
    """One row per foreign-key edge, ordered by constraint name."""
    return (
        _use(database_name)
        + " SELECT C.CONSTRAINT_NAME AS [ConstraintName],"
        " FK.tableName AS FKTable,"
        " CU.columnName AS FKColumn,"
        " PK.tableName AS PKTable,"
        " PT.columnName AS PKColumn"
        " FROM INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS C"
        " INNER JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS FK ON C.CONSTRAINT_NAME = FK.CONSTRAINT_NAME"
        " INNER JOIN INFORMATION_SCHEMA.TABLE_CONSTRAINTS PK ON C.UNIQUE_CONSTRAINT_NAME = PK.CONSTRAINT_NAME"
        " INNER JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE CU ON C.CONSTRAINT_NAME = CU.CONSTRAINT_NAME"
        " INNER JOIN ("
        " SELECT i1.tableName,"
        " i2.columnName"
        " FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS i1"
        " INNER JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE i2 ON i1.CONSTRAINT_NAME = i2.CONSTRAINT_NAME"
        " WHERE i1.CONSTRAINT_TYPE = 'PRIMARY KEY'"
        " ) PT ON PT.tableName = PK.tableName"
        " ORDER BY"
        " C.CONSTRAINT_NAME"
    )


def default_values_sql(database_name: str) -> str:
    return (
        _use(database_name)
        + " SELECT sys.Objects.[Name] AS [TableName],"
        " syscolumns.[Name] AS [ColumnName],"
        " syscomments.text AS [DefaultValue]"
        " FROM sys.objects"
        " INNER JOIN syscolumns ON sys.objects.[object_id] = syscolumns.[id]"
        " INNER JOIN syscomments ON syscomments.id = syscolumns.cdefault"
        " WHERE syscolumns.cdefault > 0"
        " AND is_ms_shipped = 0"
        " ORDER BY sys.objects.[name],syscolumns.colorder"
    )
