"""
Initial schema migration - creates weather cache table
"""

from typing import TYPE_CHECKING, Type

from ..base import BaseMigration

if TYPE_CHECKING:
    from ...wrapper import DatabaseWrapper


class Migration001WeatherCache(BaseMigration):
    """Create weather_cache table"""

    version = 1
    description = "Create weather cache table"

    def up(self, db: "DatabaseWrapper") -> None:
        with db.getCursor() as cursor:
            # One row per (date, location), replaced on every successful fetch
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS weather_cache (
                    key TEXT PRIMARY KEY,
                    date TEXT NOT NULL,
                    temp_max REAL NOT NULL,
                    temp_min REAL NOT NULL,
                    description TEXT NOT NULL,
                    icon TEXT NOT NULL,
                    hourly_json TEXT NOT NULL,
                    daily_json TEXT NOT NULL,
                    last_updated INTEGER NOT NULL
                )
            """
            )

            # Sweep deletes by age
            cursor.execute(
                """
                CREATE INDEX IF NOT EXISTS weather_cache_last_updated_idx
                ON weather_cache (last_updated)
            """
            )

    def down(self, db: "DatabaseWrapper") -> None:
        with db.getCursor() as cursor:
            cursor.execute("DROP INDEX IF EXISTS weather_cache_last_updated_idx")
            cursor.execute("DROP TABLE IF EXISTS weather_cache")


def getMigration() -> Type[BaseMigration]:
    """Return the migration class for this module"""
    return Migration001WeatherCache
