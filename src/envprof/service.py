"""Profile operations used by the CLI and TUI.

``ProfileService`` ties a ``ProfileStore`` to an ``EnvFileManager``.  It is
the only place where stored profile state and the live file meet:

- ``activate`` flips the store's active flag (one atomic store operation)
  and then writes the profile's content to the live file.
- If that write fails the store already names the new profile as active
  while the live file still holds the old content.  This is not rolled back;
  ``status`` reports it as drift.

User input is validated here with pydantic models before it reaches the
store; the store and manager themselves accept any text.
"""

import logging
from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator

from envprof.constants import PROFILE_NAME_MAX_LENGTH
from envprof.domain.dotenv import is_utf8
from envprof.envfile import EnvFileManager
from envprof.profiles import Profile, ProfileStore

logger = logging.getLogger(__name__)


def _require_utf8(value: object) -> object:
    # Live files may hold arbitrary bytes; text entered by a user must be UTF-8.
    if isinstance(value, str) and not is_utf8(value):
        raise ValueError("content contains bytes that are not valid UTF-8")
    return value


class ProfileInput(BaseModel):
    """Validated fields for a new profile."""

    name: str = Field(min_length=1, max_length=PROFILE_NAME_MAX_LENGTH)
    label: str | None = Field(default=None, max_length=PROFILE_NAME_MAX_LENGTH)
    content: str = Field(min_length=1)

    @field_validator("name", "label", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("content", mode="before")
    @classmethod
    def _valid_utf8(cls, value: object) -> object:
        return _require_utf8(value)


class ProfileUpdate(BaseModel):
    """Validated fields for a profile update; omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=PROFILE_NAME_MAX_LENGTH)
    label: str | None = Field(default=None, max_length=PROFILE_NAME_MAX_LENGTH)
    content: str | None = Field(default=None, min_length=1)

    @field_validator("name", "label", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("content", mode="before")
    @classmethod
    def _valid_utf8(cls, value: object) -> object:
        return _require_utf8(value)


class ContentInput(BaseModel):
    """Validated content for a direct overwrite of the live file."""

    content: str = Field(min_length=1)

    @field_validator("content", mode="before")
    @classmethod
    def _valid_utf8(cls, value: object) -> object:
        return _require_utf8(value)


@dataclass(frozen=True)
class Status:
    """Snapshot of the active profile versus the live file.

    ``in_sync`` is None when no profile is active.
    """

    active: Profile | None
    live_exists: bool
    in_sync: bool | None

    @property
    def drifted(self) -> bool:
        return self.in_sync is False


class ProfileService:
    """Profile CRUD, activation, and live-file access.

    Args:
        store: Where profiles are kept.
        env_file: Manager for the live file profiles are applied to.
    """

    def __init__(self, store: ProfileStore, env_file: EnvFileManager) -> None:
        self._store = store
        self._env_file = env_file

    @property
    def store(self) -> ProfileStore:
        return self._store

    @property
    def env_file(self) -> EnvFileManager:
        return self._env_file

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def list_profiles(self) -> list[Profile]:
        return self._store.list_profiles()

    def get(self, name: str) -> Profile:
        return self._store.get(name)

    def create(self, name: str, content: str, label: str | None = None) -> Profile:
        """Validate and store a new, inactive profile.

        Raises pydantic ValidationError on a blank name or empty content and
        ProfileConflictError if the name is taken.
        """
        data = ProfileInput(name=name, label=label, content=content)
        return self._store.create(data.name, data.content, data.label)

    def create_from_current(self, name: str, label: str | None = None) -> Profile:
        """Store the live file's current content as a new profile."""
        return self.create(name, self._env_file.read(), label)

    def update(
        self,
        name: str,
        *,
        new_name: str | None = None,
        label: str | None = None,
        content: str | None = None,
    ) -> Profile:
        """Validate and apply changes to a stored profile.

        Updating the active profile does not touch the live file; activate it
        again to apply the new content.
        """
        data = ProfileUpdate(name=new_name, label=label, content=content)
        return self._store.update(
            name, new_name=data.name, label=data.label, content=data.content
        )

    def delete(self, name: str) -> None:
        self._store.delete(name)

    def activate(self, name: str) -> Profile:
        """Make ``name`` the active profile and apply its content.

        The store update happens first.  ``OSError`` from the file write
        propagates with the store already updated.
        """
        profile = self._store.set_active(name)
        logger.info("Applying profile %s to %s", name, self._env_file.path)
        self._env_file.write(profile.content)
        return profile

    def deactivate(self, name: str) -> Profile:
        """Clear the active flag without touching the live file."""
        return self._store.deactivate(name)

    # ------------------------------------------------------------------
    # Live file
    # ------------------------------------------------------------------

    def current(self) -> str:
        return self._env_file.read()

    def write_current(self, content: str) -> None:
        """Overwrite the live file directly, without creating a profile."""
        data = ContentInput(content=content)
        self._env_file.write(data.content)

    def status(self) -> Status:
        """Compare the live file against the active profile's content."""
        active = self._store.active()
        live_exists = self._env_file.exists()
        if active is None:
            return Status(active=None, live_exists=live_exists, in_sync=None)
        in_sync = live_exists and self._env_file.read() == active.content
        if not in_sync:
            logger.debug(
                "Live file %s differs from active profile %s", self._env_file.path, active.name
            )
        return Status(active=active, live_exists=live_exists, in_sync=in_sync)
