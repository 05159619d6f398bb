"""
Common utilities for Calendar Weather.
"""

import datetime
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def toUtc(dt: datetime.datetime) -> datetime.datetime:
    """
    Convert datetime to aware UTC datetime.
    Naive datetimes are treated as already being in UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)


def nowUtc() -> datetime.datetime:
    """Get current time as aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def toEpochMillis(dt: datetime.datetime) -> int:
    """Convert datetime to milliseconds since Unix epoch."""
    return int(toUtc(dt).timestamp() * 1000)


def fromEpochMillis(millis: int) -> datetime.datetime:
    """Convert milliseconds since Unix epoch to aware UTC datetime."""
    return datetime.datetime.fromtimestamp(millis / 1000, tz=datetime.timezone.utc)


def jsonDumps(data: Any, compact: Optional[bool] = None, **kwargs) -> str:
    dumpKwargs = {
        "ensure_ascii": False,
        "default": str,
        "sort_keys": True,
    }

    if compact is None:
        # If indent is passed, then user want pretty-printed JSON,
        #  no need to use compact separators
        compact = "indent" not in kwargs

    if compact:
        dumpKwargs["separators"] = (",", ":")
    dumpKwargs.update(kwargs)
    return json.dumps(data, **dumpKwargs)


def load_dotenv(path: str = ".env", populateEnv: bool = True) -> Dict[str, str]:
    """
    Simple dotenv file loader.
    Just read file line by line and put key-value pairs into dictionary.
    Missing file is not an error, empty dictionary is returned.

    Args:
        path: Path to .env file (default ".env")
        populateEnv: Whether to populate environment variables (default True)

    Returns:
        Dictionary of key-value pairs from .env file
    """
    ret: Dict[str, str] = {}
    if not os.path.isfile(path):
        logger.debug(f"No dotenv file at {path}")
        return ret

    with open(path, "rt") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if sep:
                ret[key.strip()] = value.strip().strip('"')

    if populateEnv:
        for k, v in ret.items():
            os.environ.setdefault(k, v)
    return ret
