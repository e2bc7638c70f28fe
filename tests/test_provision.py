"""
Tests for idempotent schema provisioning and verification
"""
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from sqlalchemy import inspect, text

from tradedb.db import (
    SchemaVerificationError,
    count_snapshots,
    find_table,
    provision_schema,
    upsert_snapshots,
    verify_schema,
)

from .helpers import SqliteDatabaseTestCase


class TestProvisionSchema(SqliteDatabaseTestCase):
    """Test provisioning against a SQLite database"""

    def _provision(self):
        with self.database.begin() as conn:
            provision_schema(conn)

    def test_provision_twice_is_idempotent(self):
        """Test two runs leave one table, one unique constraint and two indexes"""
        self._provision()
        self._provision()

        with self.database.begin() as conn:
            self.assertEqual(find_table(conn, "stock_prices"), ["stock_prices"])
            inspector = inspect(conn)
            index_names = sorted(ix["name"] for ix in inspector.get_indexes("stock_prices"))
            self.assertEqual(index_names, ["idx_stock_prices_last_updated", "idx_stock_prices_symbol"])
            uniques = inspector.get_unique_constraints("stock_prices")
            self.assertEqual([uc["column_names"] for uc in uniques], [["symbol"]])
            verify_schema(conn)

    def test_missing_indexes_are_recreated(self):
        """Test a dropped index is restored on the next run"""
        self._provision()
        with self.database.begin() as conn:
            conn.execute(text("DROP INDEX idx_stock_prices_last_updated"))
            with self.assertRaises(SchemaVerificationError):
                verify_schema(conn)

        self._provision()
        with self.database.begin() as conn:
            verify_schema(conn)

    def test_provision_does_not_touch_rows(self):
        """Test provisioning leaves existing rows alone"""
        self._provision()
        with self.database.begin() as conn:
            upsert_snapshots(conn, [("AAPL", Decimal("175.50"), None, None, None, None)])

        self._provision()
        with self.database.begin() as conn:
            self.assertEqual(count_snapshots(conn), 1)


class TestFindTable(SqliteDatabaseTestCase):
    """Test schema catalog lookups on SQLite"""

    def test_unknown_table_returns_no_rows(self):
        """Test lookups for tables that do not exist"""
        with self.database.begin() as conn:
            self.assertEqual(find_table(conn, "stock_prices"), [])
            self.assertEqual(find_table(conn, "no_such_table"), [])

    def test_verify_on_empty_database_fails(self):
        """Test verification fails before provisioning"""
        with self.database.begin() as conn:
            with self.assertRaises(SchemaVerificationError):
                verify_schema(conn)


def _fake_connection(dialect_name, rows=()):
    conn = mock.MagicMock()
    conn.dialect.name = dialect_name
    conn.execute.return_value = list(rows)
    return conn


class TestPostgresDialectPaths(unittest.TestCase):
    """Test the PostgreSQL-only statements issued by provisioning"""

    def test_find_table_queries_information_schema(self):
        """Test find_table binds the table name into the catalog query"""
        conn = _fake_connection("postgresql", [SimpleNamespace(table_name="stock_prices")])

        self.assertEqual(find_table(conn, "stock_prices"), ["stock_prices"])

        statement, params = conn.execute.call_args[0]
        sql = str(statement)
        self.assertIn("information_schema.tables", sql)
        self.assertIn("table_schema = 'public'", sql)
        self.assertIn("table_name = :name", sql)
        self.assertEqual(params, {"name": "stock_prices"})

    def test_find_table_no_rows(self):
        """Test find_table returns an empty list when the catalog has no match"""
        conn = _fake_connection("postgresql")
        self.assertEqual(find_table(conn, "no_such_table"), [])

    def test_provision_installs_trigger(self):
        """Test the refresh function and trigger are (re)created in order"""
        conn = _fake_connection("postgresql")

        provision_schema(conn)

        executed = [str(call.args[0]) for call in conn.execute.call_args_list]
        self.assertEqual(len(executed), 3)
        self.assertIn("CREATE OR REPLACE FUNCTION touch_stock_prices_last_updated()", executed[0])
        self.assertIn("IS NOT DISTINCT FROM OLD.last_updated", executed[0])
        self.assertIn("DROP TRIGGER IF EXISTS trg_stock_prices_last_updated ON stock_prices", executed[1])
        self.assertIn("CREATE TRIGGER trg_stock_prices_last_updated", executed[2])
        self.assertIn("BEFORE UPDATE ON stock_prices", executed[2])

    def test_sqlite_skips_trigger(self):
        """Test no trigger statements are sent to SQLite"""
        conn = _fake_connection("sqlite")
        provision_schema(conn)
        conn.execute.assert_not_called()


if __name__ == "__main__":
    unittest.main()
