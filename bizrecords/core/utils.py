"""Shared utility functions for the bizrecords package."""
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from bizrecords.core.fields import format_timestamp, timestamp_to_datetime

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = Path("bizrecords.env")
DEFAULT_DB_NAME = "bizrecords.db"


def get_config_value(key: str, default: str = "") -> str:
    """Get a configuration value from the environment, stripped of whitespace."""

    return (os.getenv(key, default) or "").strip()


def load_env_file(path: Path) -> None:
    """Load environment variables from a file if it exists.

    Lines are ``KEY=VALUE``; comments and blank lines are skipped and
    variables already present in the environment win.
    """
    if not path.exists():
        return

    try:
        with path.open(encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                if not key or key in os.environ:
                    continue
                os.environ[key] = value.strip().strip('"').strip("'")
    except OSError as exc:
        logger.debug("Could not load env file %s: %s", path, exc)


def resolve_db_path() -> Path:
    """Pick the database file from the environment.

    Priority: ``BIZRECORDS_DB_PATH``, then ``BIZRECORDS_DATA_DIR/bizrecords.db``,
    then ``bizrecords.db`` in the working directory.
    """
    explicit = get_config_value("BIZRECORDS_DB_PATH")
    if explicit:
        return Path(explicit).expanduser()

    data_dir = get_config_value("BIZRECORDS_DATA_DIR")
    if data_dir:
        return Path(data_dir).expanduser() / DEFAULT_DB_NAME
    return Path(DEFAULT_DB_NAME)


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def new_id() -> str:
    return str(uuid.uuid4())


def later_timestamp(candidate: str, previous: Optional[str]) -> str:
    """Return whichever timestamp is later so ``updatedAt`` never moves backwards."""

    if not previous:
        return candidate
    if timestamp_to_datetime(previous) > timestamp_to_datetime(candidate):
        return previous
    return candidate
