import shutil
import tempfile
import unittest
from pathlib import Path

from tradedb.config import Settings
from tradedb.db import Database


class SqliteDatabaseTestCase(unittest.TestCase):
    """Opens a Database on a throwaway SQLite file for each test."""

    def setUp(self):
        self.tmpdir = Path(tempfile.mkdtemp())
        self.database_url = f"sqlite:///{self.tmpdir / 'tradedb.sqlite3'}"
        self.settings = Settings(
            database_url=self.database_url,
            sql_echo=False,
            ssl=False,
            log_level="INFO",
        )
        self.database = Database(self.settings).open()

    def tearDown(self):
        self.database.close()
        shutil.rmtree(self.tmpdir, ignore_errors=True)
