"""Centralized database engine and connection helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Dict
from urllib.parse import quote_plus
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"

# ADO.NET keyword -> ODBC keyword
_ADO_KEYWORDS: Dict[str, str] = {
    "data source": "SERVER",
    "server": "SERVER",
    "address": "SERVER",
    "initial catalog": "DATABASE",
    "database": "DATABASE",
    "user id": "UID",
    "uid": "UID",
    "password": "PWD",
    "pwd": "PWD",
    "connect timeout": "Timeout",
    "connection timeout": "Timeout",
    "encrypt": "Encrypt",
    "trustservercertificate": "TrustServerCertificate",
    "driver": "DRIVER",
}


def _odbc_url(odbc_parts: list[str]) -> str:
    return f"mssql+pyodbc:///?odbc_connect={quote_plus(';'.join(odbc_parts))}"


def _normalize_jdbc(connection_string: str) -> str:
    rest = connection_string[len("jdbc:sqlserver://") :]
    host_port, _, params = rest.partition(";")
    host, _, port = host_port.partition(":")
    database = ""
    user = ""
    password = ""
    driver = DEFAULT_ODBC_DRIVER
    for part in params.split(";"):
        if not part:
            continue
        key, _, value = part.partition("=")
        key = key.lower()
        if key == "databasename":
            database = value
        elif key == "user":
            user = value
        elif key == "password":
            password = value
        elif key == "driver":
            driver = value
    server_part = f"{host},{port}" if port else host
    odbc_parts = [
        f"DRIVER={driver}",
        f"SERVER={server_part}",
        f"DATABASE={database}",
        f"UID={user}",
        f"PWD={password}",
        "Encrypt=yes",
        "TrustServerCertificate=yes",
    ]
    return _odbc_url(odbc_parts)


def _normalize_ado(connection_string: str) -> str:
    values: Dict[str, str] = {}
    trusted = False
    for part in connection_string.split(";"):
        if not part.strip():
            continue
        key, _, value = part.partition("=")
        key = key.strip().lower()
        value = value.strip()
        if key in ("integrated security", "trusted_connection"):
            trusted = value.lower() in ("sspi", "true", "yes")
            continue
        odbc_key = _ADO_KEYWORDS.get(key)
        if odbc_key is None:
            logger.debug("Ignoring unsupported connection keyword %r", key)
            continue
        values[odbc_key] = value

    odbc_parts = [f"DRIVER={values.pop('DRIVER', DEFAULT_ODBC_DRIVER)}"]
    odbc_parts.extend(f"{key}={value}" for key, value in values.items())
    if trusted:
        odbc_parts.append("Trusted_Connection=yes")
    if "TrustServerCertificate" not in values:
        odbc_parts.append("TrustServerCertificate=yes")
    return _odbc_url(odbc_parts)


def _is_ado_connection_string(connection_string: str) -> bool:
    if "://" in connection_string or "=" not in connection_string:
        return False
    first_key = connection_string.split(";", 1)[0].partition("=")[0].strip().lower()
    return first_key in _ADO_KEYWORDS or first_key in ("integrated security", "trusted_connection")


def normalize_connection_string(connection_string: str) -> str:
    """Translate JDBC and ADO.NET SQL Server descriptors into a SQLAlchemy URL.

    SQLAlchemy URLs are returned unchanged.
    """
    if connection_string.startswith("jdbc:sqlserver://"):
        return _normalize_jdbc(connection_string)
    if _is_ado_connection_string(connection_string):
        return _normalize_ado(connection_string)
    return connection_string


@lru_cache(maxsize=8)
def get_engine(connection_string: str) -> Engine:
    """Retrieve a cached SQLAlchemy engine for the connection string."""
    normalized = normalize_connection_string(connection_string)
    engine = create_engine(normalized, pool_pre_ping=True, pool_recycle=1800)
    return engine


def get_connection(connection_string: str) -> Connection:
    """Get a raw connection from the engine."""
    engine = get_engine(connection_string)
    return engine.connect()
