from urllib.parse import unquote_plus

from db.database_manager import normalize_connection_string


def _odbc_parts(url: str) -> list[str]:
    prefix = "mssql+pyodbc:///?odbc_connect="
    assert url.startswith(prefix)
    return unquote_plus(url[len(prefix):]).split(";")


def test_jdbc_connection_string_is_translated():
    url = normalize_connection_string(
        "jdbc:sqlserver://dbhost:1433;databaseName=Shop;user=sa;password=secret"
    )

    parts = _odbc_parts(url)
    assert "SERVER=dbhost,1433" in parts
    assert "DATABASE=Shop" in parts
    assert "UID=sa" in parts
    assert "PWD=secret" in parts
    assert parts[0] == "DRIVER=ODBC Driver 18 for SQL Server"


def test_ado_connection_string_with_integrated_security():
    url = normalize_connection_string(
        "Data Source=Localhost;Initial Catalog=Master;Integrated Security=SSPI;Connect Timeout=1;"
    )

    parts = _odbc_parts(url)
    assert "SERVER=Localhost" in parts
    assert "DATABASE=Master" in parts
    assert "Timeout=1" in parts
    assert "Trusted_Connection=yes" in parts


def test_ado_connection_string_with_credentials():
    parts = _odbc_parts(normalize_connection_string("Server=db;Database=Shop;User Id=app;Password=pw"))

    assert "UID=app" in parts
    assert "PWD=pw" in parts
    assert "Trusted_Connection=yes" not in parts


def test_sqlalchemy_urls_pass_through():
    assert normalize_connection_string("sqlite://") == "sqlite://"
    url = "mssql+pyodbc://user:pw@dsn"
    assert normalize_connection_string(url) == url
