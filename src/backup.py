"""
One-shot backups of game files and bulk rollback.

A run starts with restore_all() so any earlier, possibly interrupted run is
undone, then calls backup() on each file before it is first modified. The
backup directory is a flat namespace keyed by filename; restore_all() moves
every file in it back to <workdir>/<filename>.

Invariants:
    - at most one backup per filename per run
    - only files directly inside the working directory can be backed up
    - backups hold pristine content: a file is captured before it is modified
"""

import os
from pathlib import PurePath
from typing import List, Optional

from errors import AlreadyExistsError, ValidationError
from filestore import FileStore, LocalFileStore, is_plain_filename
from logging_utils import get_logger

logger = get_logger(__name__)

BACKUP_DIR_NAME = os.getenv("BNKFIX_BACKUP_DIR", "backup")


class BackupGuard:
    """Tracks which files were captured during this run.

    Attributes:
        store:      File store rooted at the game directory.
        workdir:    Directory restored files are moved back into.
        backup_dir: Directory holding the pristine copies.
    """

    def __init__(self, store: Optional[FileStore] = None, workdir: str = ".",
                 backup_dir: Optional[str] = None):
        self.store = store or LocalFileStore()
        self.workdir = workdir
        self.backup_dir = backup_dir or str(PurePath(workdir) / BACKUP_DIR_NAME)
        self._captured = set()

    def backup_path(self, filename: str) -> str:
        return str(PurePath(self.backup_dir) / filename)

    def has_backup(self, filename: str) -> bool:
        return filename in self._captured or self.store.exists(self.backup_path(filename))

    def backup(self, path) -> bool:
        """
        Copy path into the backup directory.

        Returns:
            False if path does not exist (nothing to protect), True once copied.

        Raises:
            ValidationError:    path is not directly inside the working directory.
            AlreadyExistsError: a backup for this filename already exists.
        """
        filename = PurePath(path).name
        if PurePath(path).parent != PurePath(self.workdir) or not is_plain_filename(filename):
            raise ValidationError(
                f"{path} is not directly in {self.workdir}; restore_all could not put it back"
            )
        if not self.store.exists(path):
            logger.debug("Nothing to back up at %s", path)
            return False

        self.store.makedirs(self.backup_dir)
        if self.has_backup(filename):
            raise AlreadyExistsError(f"backup of {filename} already captured this run")

        self.store.copy(path, self.backup_path(filename))
        self._captured.add(filename)
        logger.info("Backed up %s", filename)
        return True

    def restore_all(self) -> List[str]:
        """Move every backup over its working copy. Returns the restored filenames."""
        if not self.store.is_dir(self.backup_dir):
            return []

        restored = []
        for filename in self.store.listdir(self.backup_dir):
            self.store.move(self.backup_path(filename), str(PurePath(self.workdir) / filename))
            restored.append(filename)
            logger.info("Restored %s", filename)
        self._captured.clear()
        return restored
