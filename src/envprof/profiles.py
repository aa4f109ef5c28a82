"""Profile model, store protocol, and implementations.

A profile is a named copy of ``.env`` content.  At most one profile in a
store is active at any time; ``set_active`` clears every other flag and sets
the target's in one step, so no reader can observe two active profiles.

Schema on disk for ``JsonProfileStore``:

    {
        "profiles": [
            {
                "name": "staging",
                "label": "Staging database",
                "content": "APP_ENV=staging\\nDB_HOST=db.stg",
                "active": true,
                "created_at": "2025-01-11T09:30:00Z",
                "updated_at": "2025-01-11T09:30:00Z"
            }
        ]
    }
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from envprof.domain.dotenv import parse_env
from envprof.errors import ProfileConflictError, ProfileNotFoundError, ProfileStoreError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Profile(BaseModel):
    """A named, persisted snapshot of ``.env`` content."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str | None = None
    content: str
    active: bool = False
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def variables(self) -> dict[str, str]:
        """Return the profile's variables for display."""
        return parse_env(self.content)


class ProfileStore(Protocol):
    """Protocol that all profile backends must satisfy."""

    def list_profiles(self) -> list[Profile]:
        """Return every profile, ordered by name."""
        ...

    def get(self, name: str) -> Profile:
        """Return a profile. Raises ProfileNotFoundError if absent."""
        ...

    def active(self) -> Profile | None:
        """Return the active profile, or None."""
        ...

    def create(self, name: str, content: str, label: str | None = None) -> Profile:
        """Insert an inactive profile. Raises ProfileConflictError on a duplicate name."""
        ...

    def update(
        self,
        name: str,
        *,
        new_name: str | None = None,
        label: str | None = None,
        content: str | None = None,
    ) -> Profile:
        """Change a profile's name, label or content. An empty label clears it."""
        ...

    def delete(self, name: str) -> None:
        """Remove a profile. Raises ProfileNotFoundError if absent."""
        ...

    def set_active(self, name: str) -> Profile:
        """Atomically make ``name`` the only active profile."""
        ...

    def deactivate(self, name: str) -> Profile:
        """Clear a profile's active flag."""
        ...

    def reload(self) -> None:
        """Re-read persisted state, if any."""
        ...


class MemoryProfileStore:
    """In-memory profile store.

    Every mutation builds a new name→profile mapping and hands it to
    ``_commit``; readers only ever see a complete mapping.  Subclasses
    persist inside ``_commit`` before the swap.
    """

    def __init__(self, profiles: list[Profile] | None = None) -> None:
        self._lock = threading.RLock()
        self._profiles: dict[str, Profile] = {p.name: p for p in profiles or []}

    def list_profiles(self) -> list[Profile]:
        return sorted(self._profiles.values(), key=lambda p: p.name)

    def get(self, name: str) -> Profile:
        try:
            return self._profiles[name]
        except KeyError:
            raise ProfileNotFoundError(name) from None

    def active(self) -> Profile | None:
        return next((p for p in self._profiles.values() if p.active), None)

    def create(self, name: str, content: str, label: str | None = None) -> Profile:
        with self._lock:
            if name in self._profiles:
                raise ProfileConflictError(name)
            profile = Profile(name=name, label=label or None, content=content)
            profiles = dict(self._profiles)
            profiles[name] = profile
            self._commit(profiles)
        logger.info("Created profile %s", name)
        return profile

    def update(
        self,
        name: str,
        *,
        new_name: str | None = None,
        label: str | None = None,
        content: str | None = None,
    ) -> Profile:
        with self._lock:
            current = self.get(name)
            target = new_name if new_name is not None else name
            if target != name and target in self._profiles:
                raise ProfileConflictError(target)
            changes: dict[str, object] = {"name": target, "updated_at": _now()}
            if label is not None:
                changes["label"] = label or None
            if content is not None:
                changes["content"] = content
            profile = current.model_copy(update=changes)
            profiles = dict(self._profiles)
            del profiles[name]
            profiles[target] = profile
            self._commit(profiles)
        logger.info("Updated profile %s", target)
        return profile

    def delete(self, name: str) -> None:
        with self._lock:
            self.get(name)
            profiles = dict(self._profiles)
            del profiles[name]
            self._commit(profiles)
        logger.info("Deleted profile %s", name)

    def set_active(self, name: str) -> Profile:
        with self._lock:
            self.get(name)
            now = _now()
            profiles = {}
            for key, profile in self._profiles.items():
                if key == name:
                    profiles[key] = profile.model_copy(update={"active": True, "updated_at": now})
                elif profile.active:
                    profiles[key] = profile.model_copy(update={"active": False, "updated_at": now})
                else:
                    profiles[key] = profile
            self._commit(profiles)
        logger.info("Profile %s is now active", name)
        return profiles[name]

    def deactivate(self, name: str) -> Profile:
        with self._lock:
            current = self.get(name)
            if not current.active:
                return current
            profile = current.model_copy(update={"active": False, "updated_at": _now()})
            profiles = dict(self._profiles)
            profiles[name] = profile
            self._commit(profiles)
        logger.info("Profile %s deactivated", name)
        return profile

    def reload(self) -> None:
        """Nothing to re-read for an in-memory store."""

    def _commit(self, profiles: dict[str, Profile]) -> None:
        self._profiles = profiles


class _StoreFile(BaseModel):
    profiles: list[Profile] = []


class JsonProfileStore(MemoryProfileStore):
    """ProfileStore persisted to a single JSON file.

    The whole file is rewritten on every mutation through a temporary
    sibling and ``os.replace``, so the file on disk is always either the old
    or the new complete state.  A missing file is an empty store.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        super().__init__(self._load())

    @property
    def path(self) -> Path:
        return self._path

    def reload(self) -> None:
        with self._lock:
            self._profiles = {p.name: p for p in self._load()}

    def _load(self) -> list[Profile]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ProfileStoreError(f"{self._path} is not valid JSON: {exc}") from exc
        try:
            data = _StoreFile.model_validate(raw)
        except ValidationError as exc:
            raise ProfileStoreError(f"Invalid profile store {self._path}: {exc}") from exc

        names = [p.name for p in data.profiles]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ProfileStoreError(f"Duplicate profile names in {self._path}: {duplicates}")
        if sum(p.active for p in data.profiles) > 1:
            raise ProfileStoreError(f"More than one active profile in {self._path}")
        return data.profiles

    def _commit(self, profiles: dict[str, Profile]) -> None:
        payload = _StoreFile(profiles=sorted(profiles.values(), key=lambda p: p.name))
        self._path.parent.mkdir(parents=True, exist_ok=True)
        f = tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp = Path(f.name)
        try:
            with f:
                f.write(payload.model_dump_json(indent=2))
            os.replace(tmp, self._path)
        finally:
            # Gone already after a successful replace.
            tmp.unlink(missing_ok=True)
        super()._commit(profiles)
