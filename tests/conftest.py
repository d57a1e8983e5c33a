import sqlite3

import pytest

from fail2banreporter.config_tree import ConfigResolver, ConfigTree
from fail2banreporter.queries import QueryCatalog
from fail2banreporter.resources import DEFAULT_CONFIG


@pytest.fixture(scope="session")
def _mock_fail2ban_sqlite_db(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "fail2ban.sqlite3"

    conn = sqlite3.connect(str(db_path))
    cursor = conn.cursor()
    # just the tables we need to test
    cursor.execute(
        """
        CREATE TABLE jails (
            name TEXT NOT NULL UNIQUE,
            enabled INTEGER NOT NULL DEFAULT 1
        );"""
    )
    cursor.execute(
        """
        CREATE TABLE bans (
            jail TEXT NOT NULL,
            ip TEXT,
            timeofban INTEGER NOT NULL,
            bantime INTEGER NOT NULL,
            bancount INTEGER NOT NULL default 1,
            data JSON,
            FOREIGN KEY(jail) REFERENCES jails(name)
        );"""
    )
    conn.commit()
    conn.close()
    yield db_path


@pytest.fixture(scope="function")
def mock_fail2ban_sqlite_db(_mock_fail2ban_sqlite_db):
    conn = sqlite3.connect(str(_mock_fail2ban_sqlite_db))
    cursor = conn.cursor()
    cursor.execute("DELETE FROM bans")
    cursor.execute("DELETE FROM jails")
    conn.commit()
    conn.close()
    yield _mock_fail2ban_sqlite_db


@pytest.fixture
def insert_rows(mock_fail2ban_sqlite_db):
    def insert(jails=(), bans=()):
        conn = sqlite3.connect(str(mock_fail2ban_sqlite_db))
        conn.executemany("INSERT INTO jails VALUES (?, ?)", jails)
        conn.executemany("INSERT INTO bans VALUES (?, ?, ?, ?, ?, ?)", bans)
        conn.commit()
        conn.close()

    return insert


@pytest.fixture
def default_tree():
    return ConfigTree.from_string(DEFAULT_CONFIG)


@pytest.fixture
def resolver(default_tree):
    return ConfigResolver(ConfigTree(), default_tree)


@pytest.fixture
def queries(resolver):
    return QueryCatalog(resolver)
