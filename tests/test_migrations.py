"""
Tests for the Alembic revisions
"""
import unittest
from pathlib import Path

import tradedb
from tradedb.config import load_settings
from tradedb.db import find_table, provision_schema, upgrade_head, verify_schema
from tradedb.db.migrate import ALEMBIC_DIR, alembic_config

from .helpers import SqliteDatabaseTestCase


class TestMigrationScripts(unittest.TestCase):
    """Test the migration scripts ship inside the package"""

    def test_alembic_dir_is_inside_package(self):
        """Test the script location resolves under tradedb"""
        package_dir = Path(tradedb.__file__).resolve().parent
        self.assertIn(package_dir, ALEMBIC_DIR.parents)
        self.assertTrue((ALEMBIC_DIR / "env.py").is_file())
        self.assertTrue((ALEMBIC_DIR / "script.py.mako").is_file())
        self.assertTrue(list((ALEMBIC_DIR / "versions").glob("*_create_stock_prices.py")))

    def test_config_points_at_package_scripts(self):
        """Test the programmatic config uses the packaged scripts"""
        settings = load_settings({"DATABASE_URL": "sqlite:///trading%20db.sqlite3"})
        config = alembic_config(settings)
        self.assertEqual(config.get_main_option("script_location"), str(ALEMBIC_DIR))
        self.assertEqual(config.get_main_option("sqlalchemy.url"), "sqlite:///trading%20db.sqlite3")


class TestAlembicUpgrade(SqliteDatabaseTestCase):
    """Test upgrading a SQLite database to head"""

    def test_upgrade_head_twice(self):
        """Test upgrading twice leaves the schema in place"""
        upgrade_head(self.settings)
        upgrade_head(self.settings)

        with self.database.begin() as conn:
            self.assertEqual(find_table(conn, "stock_prices"), ["stock_prices"])
            self.assertEqual(find_table(conn, "alembic_version"), ["alembic_version"])
            verify_schema(conn)

    def test_provision_after_upgrade_is_noop(self):
        """Test provisioning on a migrated database changes nothing"""
        upgrade_head(self.settings)
        with self.database.begin() as conn:
            provision_schema(conn)
            verify_schema(conn)


if __name__ == "__main__":
    unittest.main()
