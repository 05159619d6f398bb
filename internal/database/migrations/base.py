"""
Base migration class for database migrations
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..wrapper import DatabaseWrapper


class BaseMigration(ABC):
    """Base class for all database migrations"""

    # Migration metadata
    version: int
    description: str

    @abstractmethod
    def up(self, db: "DatabaseWrapper") -> None:
        """
        Apply the migration

        Args:
            db: DatabaseWrapper to execute SQL commands with
        """
        pass

    @abstractmethod
    def down(self, db: "DatabaseWrapper") -> None:
        """
        Rollback the migration

        Args:
            db: DatabaseWrapper to execute SQL commands with
        """
        pass
