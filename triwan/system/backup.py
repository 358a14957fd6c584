import logging
import os
import shutil
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from triwan.core.errors import BackupError

log = logging.getLogger(__name__)

PREFIX = "config_backup_"
SUFFIX = ".bak"


def _unique_dir(root: str, now: datetime) -> str:
    base = os.path.join(root, PREFIX + now.strftime("%Y%m%d_%H%M%S"))
    path, n = base, 1
    while os.path.exists(path):
        path = f"{base}_{n}"
        n += 1
    return path


def snapshot(
    stores: Iterable[str],
    store_path: Callable[[str], str],
    root: str,
    now: Optional[datetime] = None,
) -> str:
    """Copy every named store into a fresh timestamped directory.

    Any failed copy raises BackupError; a partial directory is left for
    inspection.
    """
    target = _unique_dir(root, now or datetime.now())
    log.info("Backing up configuration to %s", target)
    try:
        os.makedirs(target)
    except OSError as e:
        raise BackupError(f"cannot create {target}: {e}") from e

    for name in stores:
        src = store_path(name)
        try:
            shutil.copyfile(src, os.path.join(target, name + SUFFIX))
        except OSError as e:
            raise BackupError(f"backup of {name} failed: {e}") from e
        log.debug("Saved %s", src)

    log.info("Backup complete")
    return target


def restore_from_backup(backup_dir: str, store_dir: str) -> List[str]:
    """Copy every ``<name>.bak`` in backup_dir back over its live store."""
    if not os.path.isdir(backup_dir):
        raise BackupError(f"no such backup: {backup_dir}")

    restored = []
    for entry in sorted(os.listdir(backup_dir)):
        if not entry.endswith(SUFFIX):
            continue
        name = entry[: -len(SUFFIX)]
        try:
            shutil.copyfile(os.path.join(backup_dir, entry), os.path.join(store_dir, name))
        except OSError as e:
            raise BackupError(f"restore of {name} failed: {e}") from e
        log.info("Restored %s from %s", name, backup_dir)
        restored.append(name)
    return restored


def list_backups(root: str) -> List[str]:
    try:
        entries = os.listdir(root)
    except FileNotFoundError:
        return []
    dirs = [
        os.path.join(root, e)
        for e in entries
        if e.startswith(PREFIX) and os.path.isdir(os.path.join(root, e))
    ]
    return sorted(dirs, reverse=True)
