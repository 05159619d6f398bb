"""Database manager for Calendar Weather with configuration and wrapper initialization."""

import logging
from typing import Any, Dict

from .wrapper import DatabaseWrapper

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "calendar_weather.db"


class DatabaseManager:
    """Manages database initialization and configuration.

    Initializes DatabaseWrapper with provided configuration and handles database setup.
    """

    __slots__ = ("config", "db")

    def __init__(self, config: Dict[str, Any]):
        """Initialize DatabaseManager with configuration.

        Args:
            config: Database configuration dict (path, timeout, readonly)
        """
        self.config = config
        self.db = DatabaseWrapper(
            dbPath=config.get("path", DEFAULT_DB_PATH),
            timeout=float(config.get("timeout", 30.0)),
            readonly=bool(config.get("readonly", False)),
        )
        logger.info(f"Database initialized: {self.config}")

    def getDatabase(self) -> DatabaseWrapper:
        """Get the database wrapper instance.

        Returns:
            DatabaseWrapper instance for database operations
        """
        return self.db
