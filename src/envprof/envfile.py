"""Live ``.env`` file manager: verbatim read/write with rotating backups.

The manager owns a single live file.  Every ``write`` copies the current
content to a sibling backup first::

    .env
    .env.backup.20250111093000
    .env.backup.20250111094512

Backup names are the one on-disk contract: ``<live name>.backup.<14 digits>``
in the live file's directory.  Rotation keeps at most ``max_backups`` of them.

Content is handled as bytes decoded/encoded as UTF-8 with ``surrogateescape``,
so line endings, non-ASCII characters and even bytes that are not valid UTF-8
survive a read-then-write untouched.
"""

import logging
import re
import shutil
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from envprof.config import Settings
from envprof.constants import (
    BACKUP_SEPARATOR,
    BACKUP_TIMESTAMP_DIGITS,
    BACKUP_TIMESTAMP_FORMAT,
    DEFAULT_MAX_BACKUPS,
)
from envprof.domain.dotenv import decode_env, encode_env, parse_env, serialize_env
from envprof.models import BackupEntry

logger = logging.getLogger(__name__)

WriteHook = Callable[[Path], None]

# One lock per live file path, shared by every manager in the process, so the
# backup-then-overwrite sequence is atomic from a caller's point of view.
_PATH_LOCKS: dict[Path, threading.RLock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _PATH_LOCKS_GUARD:
        lock = _PATH_LOCKS.get(path)
        if lock is None:
            lock = _PATH_LOCKS[path] = threading.RLock()
        return lock


class EnvFileManager:
    """Reads, writes, backs up and restores one live ``.env`` file.

    Args:
        path: Location of the live file.  Made absolute on construction.
        max_backups: Number of backups kept after rotation.  ``0`` deletes
            every backup right after it is taken; disable backups instead if
            none are wanted.
        backups_enabled: When False, ``write`` never takes a backup.
        on_write: Optional callback invoked with the live path after every
            successful write (e.g. to drop a process-wide config cache).
            Its failures are logged and never fail the write.
        clock: Returns the current time; used to stamp backup names.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        backups_enabled: bool = True,
        on_write: WriteHook | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if max_backups < 0:
            raise ValueError("max_backups must be >= 0")
        self._path = Path(path).expanduser().resolve()
        self._max_backups = max_backups
        self._backups_enabled = backups_enabled
        self._on_write = on_write
        self._clock = clock
        # [0-9] rather than \d: only ASCII digits form a backup name.
        self._backup_re = re.compile(
            re.escape(self._path.name + BACKUP_SEPARATOR)
            + rf"([0-9]{{{BACKUP_TIMESTAMP_DIGITS}}})"
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, on_write: WriteHook | None = None
    ) -> "EnvFileManager":
        """Build a manager from loaded settings."""
        return cls(
            settings.env_file,
            max_backups=settings.max_backups,
            backups_enabled=settings.backups_enabled,
            on_write=on_write,
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def max_backups(self) -> int:
        return self._max_backups

    @property
    def backups_enabled(self) -> bool:
        return self._backups_enabled

    # ------------------------------------------------------------------
    # Live file
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self._path.is_file()

    def read(self) -> str:
        """Return the live file's content verbatim, or "" if it is missing."""
        try:
            return decode_env(self._path.read_bytes())
        except FileNotFoundError:
            return ""

    def parsed(self) -> dict[str, str]:
        """Return the live file's variables for display."""
        return parse_env(self.read())

    def write(self, text: str) -> None:
        """Replace the live file's content, backing up the previous content.

        The backup (if any) is taken before the overwrite and is kept even if
        the overwrite then fails.  ``OSError`` from the overwrite propagates.
        """
        with _lock_for(self._path):
            if self._backups_enabled and self.exists():
                self.backup()
            self._path.write_bytes(encode_env(serialize_env(text)))
        logger.info("Wrote %d characters to %s", len(text), self._path)
        self._notify_written()

    def _notify_written(self) -> None:
        if self._on_write is None:
            return
        try:
            self._on_write(self._path)
        except Exception:
            logger.warning("Post-write hook failed for %s", self._path, exc_info=True)

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def backup(self) -> BackupEntry | None:
        """Copy the live file to a timestamped sibling, then rotate.

        Returns None when the live file does not exist, backups are
        disabled, or rotation deleted the new copy straight away
        (``max_backups=0``).  A second backup within the same second
        overwrites the first.
        """
        if not self._backups_enabled:
            return None
        created_at = self._clock().replace(microsecond=0)
        target = self._path.with_name(
            f"{self._path.name}{BACKUP_SEPARATOR}{created_at.strftime(BACKUP_TIMESTAMP_FORMAT)}"
        )
        with _lock_for(self._path):
            if not self.exists():
                return None
            shutil.copyfile(self._path, target)
            logger.info("Backed up %s to %s", self._path.name, target.name)
            if target in self._rotate():
                return None
        return BackupEntry(path=target, created_at=created_at)

    def _backups(self) -> dict[Path, str]:
        """Map each backup file of this live file to its timestamp digits.

        A live file whose directory does not exist has no backups.
        """
        try:
            siblings = list(self._path.parent.iterdir())
        except FileNotFoundError:
            return {}
        found: dict[Path, str] = {}
        for path in siblings:
            match = self._backup_re.fullmatch(path.name)
            if match is not None and path.is_file():
                found[path] = match.group(1)
        return found

    def _rotate(self) -> list[Path]:
        """Delete the oldest backups until at most ``max_backups`` remain.

        Oldest means smallest modification time; ties are broken by file name,
        which is chronological by construction.
        """
        paths = list(self._backups())
        excess = len(paths) - self._max_backups
        if excess <= 0:
            return []
        paths.sort(key=lambda p: (p.stat().st_mtime_ns, p.name))
        removed = paths[:excess]
        for path in removed:
            path.unlink(missing_ok=True)
            logger.info("Rotated out backup %s", path.name)
        return removed

    def list_backups(self) -> list[BackupEntry]:
        """Return all backups of the live file, newest first."""
        entries = [self._entry(path, digits) for path, digits in self._backups().items()]
        return sorted(entries, key=lambda e: e.name, reverse=True)

    def get_backup(self, name: str) -> BackupEntry:
        """Look up a backup by file name.

        Raises FileNotFoundError if no such backup exists.
        """
        match = self._backup_re.fullmatch(name)
        if match is None:
            raise FileNotFoundError(f"Backup not found: {name}")
        path = self._path.with_name(name)
        if not path.is_file():
            raise FileNotFoundError(f"Backup not found: {name}")
        return self._entry(path, match.group(1))

    def restore(self, backup: BackupEntry) -> None:
        """Make a backup's content the live content.

        Goes through ``write`` so the content being replaced is itself backed
        up.  The backup is read first, since rotation may delete it.
        """
        if not backup.path.is_file():
            raise FileNotFoundError(f"Backup not found: {backup.name}")
        content = backup.read()
        self.write(content)
        logger.info("Restored %s from %s", self._path.name, backup.name)

    def _entry(self, path: Path, digits: str) -> BackupEntry:
        try:
            stamp = datetime.strptime(digits, BACKUP_TIMESTAMP_FORMAT)
        except ValueError:
            # 14 digits that are not a valid date: the file was not made by us.
            stamp = datetime.fromtimestamp(path.stat().st_mtime)
        return BackupEntry(path=path, created_at=stamp)
