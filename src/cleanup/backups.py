from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from src.common.console import success

logger = logging.getLogger(__name__)


def find_backups(manifest_dir: Path, suffix: str = ".bak") -> List[Path]:
    if not manifest_dir.is_dir():
        return []
    return sorted(path for path in manifest_dir.glob(f"*{suffix}") if path.is_file())


def restore_backups(manifest_dir: Path, suffix: str = ".bak") -> List[Path]:
    """Rename every ``<name><suffix>`` in ``manifest_dir`` back to ``<name>``.

    An existing original is overwritten. Returns the restored paths.
    """

    logger.info("Checking for backup files...")
    backups = find_backups(manifest_dir, suffix)
    if not backups:
        logger.info("No backup files found")
        return []

    logger.info("Found backup files. Restoring original manifests...")
    restored: List[Path] = []
    for backup in backups:
        original = backup.with_name(backup.name[: -len(suffix)])
        backup.replace(original)
        success(logger, "Restored %s", original.name)
        restored.append(original)
    return restored
