"""
Migration manager for handling database migrations
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from .base import BaseMigration

if TYPE_CHECKING:
    from ..wrapper import DatabaseWrapper

logger = logging.getLogger(__name__)

MIGRATION_VERSION_KEY = "db-migration-version"
MIGRATION_LAST_RUN_KEY = "db-migration-last-run"


class MigrationError(Exception):
    """Exception raised when migration fails"""

    pass


class MigrationManager:
    """
    Manages database migrations

    Responsibilities:
    - Track current migration version in settings table
    - Execute migrations in order
    - Support rollback operations
    """

    def __init__(self, db: "DatabaseWrapper"):
        self.db = db
        self.migrations: List[Type[BaseMigration]] = []

    def registerMigrations(self, migrations: List[Type[BaseMigration]]) -> None:
        """
        Register available migrations

        Raises:
            MigrationError: If two migrations share a version
        """
        versions = [m.version for m in migrations]
        if len(versions) != len(set(versions)):
            raise MigrationError("Duplicate migration versions detected")

        self.migrations = sorted(migrations, key=lambda m: m.version)
        logger.debug(f"Registered {len(self.migrations)} migrations")

    def loadMigrationsFromVersions(self) -> None:
        """Register migrations auto-discovered in versions package"""
        from .versions import DISCOVERED_MIGRATIONS

        self.registerMigrations(DISCOVERED_MIGRATIONS)

    def getCurrentVersion(self) -> int:
        """
        Get current migration version from settings table

        Returns:
            Current version (0 if no migrations run)
        """
        versionStr = self.db.getSetting(MIGRATION_VERSION_KEY, "0")
        try:
            return int(versionStr) if versionStr else 0
        except ValueError:
            logger.error(f"Invalid migration version in settings: {versionStr}")
            return 0

    def _setVersion(self, version: int) -> None:
        self.db.setSetting(MIGRATION_VERSION_KEY, str(version))
        self.db.setSetting(MIGRATION_LAST_RUN_KEY, datetime.now().isoformat())
        logger.info(f"Updated migration version to {version}")

    def getPendingMigrations(self) -> List[Type[BaseMigration]]:
        """Get list of migrations that haven't been applied yet"""
        currentVersion = self.getCurrentVersion()
        return [m for m in self.migrations if m.version > currentVersion]

    def migrate(self, targetVersion: Optional[int] = None) -> None:
        """
        Run migrations up to target version

        Args:
            targetVersion: Target version to migrate to (None = latest)

        Raises:
            MigrationError: If migration fails
        """
        currentVersion = self.getCurrentVersion()
        logger.info(f"Current migration version: {currentVersion}")

        if not self.migrations:
            logger.info("No migrations to run")
            return

        if targetVersion is None:
            targetVersion = self.migrations[-1].version

        if targetVersion == currentVersion:
            logger.info("Already at target version")
            return

        if targetVersion > self.migrations[-1].version:
            raise MigrationError(f"Target version {targetVersion} is higher than latest version")

        pendingMigrations = [m for m in self.migrations if currentVersion < m.version <= targetVersion]
        if not pendingMigrations:
            logger.info("No pending migrations")
            return

        logger.info(f"Running {len(pendingMigrations)} migrations")

        for migrationClass in pendingMigrations:
            migration = migrationClass()
            logger.info(f"Applying migration {migration.version}: {migration.description}")

            try:
                startTime = datetime.now()
                migration.up(self.db)
                duration = (datetime.now() - startTime).total_seconds()

                self._setVersion(migration.version)
                logger.info(f"Migration {migration.version} completed in {duration:.2f}s")
            except Exception as e:
                logger.error(f"Migration {migration.version} failed: {e}")
                logger.exception(e)
                raise MigrationError(f"Failed to apply migration {migration.version}") from e

        logger.info("All migrations completed successfully")

    def rollback(self, steps: int = 1) -> None:
        """
        Rollback N migrations

        Raises:
            MigrationError: If rollback fails
        """
        currentVersion = self.getCurrentVersion()

        migrationsToRollback = [m for m in reversed(self.migrations) if m.version <= currentVersion][:steps]
        if not migrationsToRollback:
            logger.info("No migrations to rollback")
            return

        logger.info(f"Rolling back {len(migrationsToRollback)} migrations")

        for migrationClass in migrationsToRollback:
            migration = migrationClass()
            logger.info(f"Rolling back migration {migration.version}: {migration.description}")

            try:
                migration.down(self.db)
                self._setVersion(migration.version - 1)
            except Exception as e:
                logger.error(f"Rollback of migration {migration.version} failed: {e}")
                logger.exception(e)
                raise MigrationError(f"Failed to rollback migration {migration.version}") from e

        logger.info("Rollback completed successfully")

    def getStatus(self) -> Dict[str, Any]:
        """Get migration status information"""
        currentVersion = self.getCurrentVersion()
        return {
            "current_version": currentVersion,
            "latest_version": self.migrations[-1].version if self.migrations else 0,
            "pending_count": len(self.getPendingMigrations()),
            "total_migrations": len(self.migrations),
            "last_run": self.db.getSetting(MIGRATION_LAST_RUN_KEY),
        }
