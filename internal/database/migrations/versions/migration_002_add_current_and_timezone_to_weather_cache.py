"""
Add current_json and timezone columns to weather_cache table

Stored current conditions and response timezone allow to build a full
weather snapshot from a cached record without a remote call.
"""

from typing import TYPE_CHECKING, Type

from ..base import BaseMigration

if TYPE_CHECKING:
    from ...wrapper import DatabaseWrapper


class Migration002AddCurrentAndTimezoneToWeatherCache(BaseMigration):
    """Add current_json and timezone columns to weather_cache table"""

    version = 2
    description = "Add current_json and timezone columns to weather_cache table"

    def up(self, db: "DatabaseWrapper") -> None:
        with db.getCursor() as cursor:
            cursor.execute(
                """
                ALTER TABLE weather_cache
                ADD COLUMN current_json TEXT
            """
            )
            cursor.execute(
                """
                ALTER TABLE weather_cache
                ADD COLUMN timezone TEXT
            """
            )

    def down(self, db: "DatabaseWrapper") -> None:
        with db.getCursor() as cursor:
            cursor.execute("ALTER TABLE weather_cache DROP COLUMN timezone")
            cursor.execute("ALTER TABLE weather_cache DROP COLUMN current_json")


def getMigration() -> Type[BaseMigration]:
    """Return the migration class for this module"""
    return Migration002AddCurrentAndTimezoneToWeatherCache
