import mysql.connector
import pytest

from office_admin.core.exceptions import ConflictError
from office_admin.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use
from office_admin.database.mysql_base import db_cursor, is_duplicate_key


class FakeCursor:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self):
        self.cursor_obj = FakeCursor()
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return self.cursor_obj

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self):
        self.conn = FakeConnection()

    def connect(self):
        return self.conn


def test_db_cursor_commits_on_success():
    factory = FakeFactory()
    with db_cursor(factory) as (_, cur):
        assert cur is factory.conn.cursor_obj

    assert factory.conn.committed
    assert not factory.conn.rolled_back
    assert factory.conn.closed
    assert factory.conn.cursor_obj.closed


@pytest.mark.parametrize("errno", [1205, 1213])
def test_lock_contention_becomes_conflict(errno):
    factory = FakeFactory()
    with pytest.raises(ConflictError):
        with db_cursor(factory):
            raise mysql.connector.errors.DatabaseError(msg="lock", errno=errno)

    assert factory.conn.rolled_back
    assert not factory.conn.committed
    assert factory.conn.closed


def test_other_errors_roll_back_and_propagate():
    factory = FakeFactory()
    with pytest.raises(ValueError):
        with db_cursor(factory):
            raise ValueError("boom")

    assert factory.conn.rolled_back
    assert factory.conn.closed


def test_is_duplicate_key():
    assert is_duplicate_key(mysql.connector.errors.IntegrityError(msg="dup", errno=1062))
    assert not is_duplicate_key(mysql.connector.errors.IntegrityError(msg="fk", errno=1452))
    assert not is_duplicate_key(ValueError("dup"))


def test_sql_splitter_keeps_semicolons_in_strings_and_drops_comments():
    sql = """
    -- rooms
    INSERT INTO meeting_rooms(name) VALUES('A;B');
    INSERT INTO meeting_rooms(name) VALUES('It\\'s');  -- trailing
    SELECT 1
    """

    statements = list(_iter_sql_statements(sql))

    assert statements == [
        "INSERT INTO meeting_rooms(name) VALUES('A;B')",
        "INSERT INTO meeting_rooms(name) VALUES('It\\'s')",
        "SELECT 1",
    ]


def test_create_database_and_use_are_stripped():
    sql = "CREATE DATABASE IF NOT EXISTS office_admin;\nUSE office_admin;\nCREATE TABLE t (id INT);\n"

    assert list(_iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE t (id INT)"]
