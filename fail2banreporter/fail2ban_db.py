import logging
import pathlib
import sqlite3
from collections.abc import Iterator, Sequence

from .exceptions import (
    RowSourceOpenFailure,
    RowSourcePrepareFailure,
    RowSourceStepFailure,
)

logger = logging.getLogger(__name__)


class Fail2BanDatabaseInterface:
    """Read-only connection to the fail2ban SQLite database."""

    def __init__(self, fpath: str | pathlib.Path):
        self.conn = None
        self.fpath = pathlib.Path(fpath)
        if not self.fpath.is_file():
            raise RowSourceOpenFailure(f"Database file '{self.fpath}' does not exist")

        uri = f"{self.fpath.resolve().as_uri()}?mode=ro"
        try:
            self.conn = sqlite3.connect(uri, uri=True)
            # sqlite only notices a corrupt file on first read
            self.conn.execute("SELECT name FROM sqlite_master LIMIT 1").fetchall()
        except sqlite3.Error as ex:
            self.close()
            raise RowSourceOpenFailure(
                f"Cannot open database '{self.fpath}': {ex}"
            ) from ex
        logger.debug("Opened fail2ban database '%s'", self.fpath)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        self.close()

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def rows(self, sql: str, params: Sequence = ()) -> Iterator[tuple]:
        """Execute ``sql`` and yield its rows one at a time."""
        if not sql.strip():
            raise RowSourcePrepareFailure("Empty query")
        if self.conn is None:
            raise RowSourcePrepareFailure("Database connection is closed")

        cursor = self.conn.cursor()
        try:
            cursor.execute(sql, params)
        except sqlite3.Error as ex:
            cursor.close()
            raise RowSourcePrepareFailure(f"{ex} (query: {sql})") from ex

        try:
            while True:
                try:
                    row = cursor.fetchone()
                except sqlite3.Error as ex:
                    raise RowSourceStepFailure(f"{ex} (query: {sql})") from ex
                if row is None:
                    return
                yield row
        finally:
            cursor.close()

    def fetch_scalar(self, sql: str, params: Sequence = ()):
        rows = self.rows(sql, params)
        try:
            row = next(rows, None)
        finally:
            rows.close()
        return None if row is None else row[0]
