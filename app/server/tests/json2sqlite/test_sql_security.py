import sqlite3

import pytest

from json2sqlite.sql_security import (
    SQLSecurityError,
    execute_query_safely,
    format_query,
    quote_identifier,
    sanitize_identifier,
    sanitize_table_name,
    validate_identifier,
)


class TestIdentifiers:

    @pytest.mark.parametrize("name, expected", [
        ("user_name", "user_name"),
        ("first name", "first_name"),
        ("e-mail", "e_mail"),
        ('x"; DROP TABLE data; --', "x___DROP_TABLE_data____"),
        ("café", "caf_"),
        ("2fa", "2fa"),
        ("", "_"),
    ])
    def test_sanitize_identifier(self, name, expected):
        assert sanitize_identifier(name) == expected

    def test_validate_accepts_allow_listed(self):
        assert validate_identifier("Col_1") == "Col_1"

    @pytest.mark.parametrize("identifier", ["", "a b", 'a"b', "a;b", "name\n"])
    def test_validate_rejects(self, identifier):
        with pytest.raises(SQLSecurityError):
            validate_identifier(identifier, "column")

    def test_validate_accepts_long_identifiers(self):
        name = "k" * 1100
        assert validate_identifier(name, "column") == name

    def test_quote_identifier(self):
        assert quote_identifier("users") == '"users"'

    def test_quote_rejects_unsanitized(self):
        with pytest.raises(SQLSecurityError):
            quote_identifier('us"ers')

    @pytest.mark.parametrize("name, expected", [
        ("users", "users"),
        ("my table", "my_table"),
        ("2024-report", "_2024_report"),
        ("_private", "_private"),
        ("  padded  ", "padded"),
        ("sqlite_stuff", "_sqlite_stuff"),
        ("SQLite_Master", "_SQLite_Master"),
        ("sqlitefoo", "sqlitefoo"),
        ("", "_"),
    ])
    def test_sanitize_table_name(self, name, expected):
        assert sanitize_table_name(name) == expected


class TestExecuteQuerySafely:

    @pytest.fixture
    def conn(self):
        conn = sqlite3.connect(":memory:")
        conn.execute('CREATE TABLE "people" ("name" TEXT)')
        yield conn
        conn.close()

    def test_format_query(self):
        assert format_query("SELECT * FROM {table}", {"table": "people"}) == 'SELECT * FROM "people"'

    def test_format_query_without_identifiers(self):
        assert format_query("SELECT 1") == "SELECT 1"

    def test_values_are_bound_not_interpolated(self, conn):
        hostile = "Robert'); DROP TABLE people; --"
        execute_query_safely(conn, 'INSERT INTO {table} ("name") VALUES (?)', [hostile], {"table": "people"})
        rows = execute_query_safely(conn, "SELECT name FROM {table}", identifier_params={"table": "people"}).fetchall()
        assert rows == [(hostile,)]

    def test_invalid_identifier_is_rejected_before_execution(self, conn):
        with pytest.raises(SQLSecurityError):
            execute_query_safely(conn, "SELECT * FROM {table}", identifier_params={"table": "people; DROP TABLE people"})
        assert conn.execute("SELECT COUNT(*) FROM people").fetchone() == (0,)
