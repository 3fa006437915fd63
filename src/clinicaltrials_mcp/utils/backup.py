"""
Raw API response backup.

Writes each upstream JSON payload to a timestamped file when a backup
directory is configured. Write-only: nothing in the project reads these
files back, and a failed write never fails the request that produced it.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def backup_file_name(prefix: str, now: datetime | None = None) -> str:
    """Return ``{prefix}_{timestamp}.json`` with a filesystem-safe timestamp."""
    stamp = (now or datetime.now()).isoformat()
    return f"{prefix}_{stamp.replace(':', '-').replace('.', '-')}.json"


def write_backup(data: Any, file_name: str, directory: Path | None) -> Path | None:
    """Write data as pretty JSON under directory; return the path written."""
    if directory is None:
        logger.debug("Skipping backup of %s: no data path configured", file_name)
        return None
    path = directory / file_name
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, default=str))
    except OSError as e:
        logger.error("Failed to write backup file %s: %s", path, e)
        return None
    logger.debug("Wrote backup %s", path)
    return path
