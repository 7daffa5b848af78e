# ecod_curation/db/migration_manager.py
import os
import logging
from typing import List, Optional

from ecod_curation.db.manager import DBManager

DEFAULT_MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), "migrations")


class MigrationManager:
    """Applies the SQL migrations for curation-owned tables

    Migration files are named ``NNN_description.sql`` and may refer to the
    configured schema as ``{schema}``.
    """

    def __init__(self, db: DBManager, migrations_dir: Optional[str] = None):
        self.db = db
        self.migrations_dir = migrations_dir or DEFAULT_MIGRATIONS_DIR
        self.logger = logging.getLogger("ecod_curation.migration")

    def _create_migration_table(self, cursor) -> None:
        """Create migration tracking table if it doesn't exist"""
        cursor.execute(self.db.sql("""
        CREATE TABLE IF NOT EXISTS {schema}.curation_migrations (
            id SERIAL PRIMARY KEY,
            migration_name VARCHAR(255) UNIQUE NOT NULL,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """))

    def get_applied_migrations(self) -> List[str]:
        """Get list of already applied migrations"""
        def fetch(cursor):
            self._create_migration_table(cursor)
            cursor.execute(self.db.sql(
                "SELECT migration_name FROM {schema}.curation_migrations ORDER BY id"
            ))
            return [row['migration_name'] for row in cursor.fetchall()]

        return self.db.execute_transaction(fetch)

    def get_migration_files(self) -> List[str]:
        """Get sorted list of migration files"""
        files = [f for f in os.listdir(self.migrations_dir)
                 if f.endswith('.sql') and f[0].isdigit()]
        return sorted(files)

    def pending_migrations(self) -> List[str]:
        applied = set(self.get_applied_migrations())
        return [m for m in self.get_migration_files() if m not in applied]

    def _apply_migration(self, migration_file: str) -> None:
        """Apply a single migration file in its own transaction"""
        file_path = os.path.join(self.migrations_dir, migration_file)
        self.logger.info(f"Applying migration: {migration_file}")

        with open(file_path, 'r') as f:
            sql = self.db.sql(f.read())

        def apply(cursor):
            cursor.execute(sql)
            cursor.execute(
                self.db.sql("INSERT INTO {schema}.curation_migrations (migration_name) VALUES (%s)"),
                (migration_file,)
            )

        self.db.execute_transaction(apply)
        self.logger.info(f"Migration applied successfully: {migration_file}")

    def apply_migrations(self) -> List[str]:
        """Apply all pending migrations

        Returns:
            Names of the migrations applied
        """
        applied = []
        for migration in self.pending_migrations():
            self._apply_migration(migration)
            applied.append(migration)
        if not applied:
            self.logger.info("No pending migrations")
        return applied
