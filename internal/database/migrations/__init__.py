"""
Database migrations module

This module provides a migration system for managing database schema changes.
"""

from .base import BaseMigration
from .manager import MigrationError, MigrationManager

__all__ = [
    "BaseMigration",
    "MigrationManager",
    "MigrationError",
]
