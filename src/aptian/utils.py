import datetime
import logging
import os
import shutil
from pathlib import Path

from dateutil.parser import parse as parse_date

logger = logging.getLogger(__name__)


def try_parse_date(value: str | None) -> datetime.datetime | None:
    """Parse a Release-style ``Date:`` value; None when missing or unparseable."""
    if not value:
        return None
    try:
        return parse_date(value)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Ignoring unparseable date '{value}': {e}")
        return None


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC).replace(microsecond=0)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data next to path and move it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.new")
    tmp_path.write_bytes(data)
    os.replace(tmp_path, path)


def atomic_write_text(path: Path, text: str) -> None:
    atomic_write_bytes(path, text.encode("utf-8"))


def reset_dir(path: Path) -> Path:
    """Remove path if it exists and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)
    return path
