"""Domain models."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from envprof.constants import ENV_ENCODING, ENV_ENCODING_ERRORS


@dataclass
class EnvVar:
    """One parsed KEY=value pair, as shown in a variables table."""

    key: str
    value: str


@dataclass(frozen=True)
class BackupEntry:
    """A timestamped copy of the live file's prior content.

    The entry is a handle on a sibling file on disk; ``created_at`` is decoded
    from the file name, not from filesystem metadata.
    """

    path: Path
    created_at: datetime

    @property
    def name(self) -> str:
        return self.path.name

    def read(self) -> str:
        """Return the backed-up content verbatim."""
        return self.path.read_bytes().decode(ENV_ENCODING, ENV_ENCODING_ERRORS)
