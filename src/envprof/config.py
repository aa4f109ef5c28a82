"""Config file loading, validation, and persistence.

Schema on disk (~/.config/envprof/config.json):

    {
        "env_file": "/srv/myapp/.env",
        "profiles_file": "~/.config/envprof/profiles.json",
        "max_backups": 10,
        "backups_enabled": true
    }

Every key is optional.  Keys prefixed with "_" are reserved (e.g. "_comment")
and are stripped on load.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from envprof.constants import DEFAULT_ENV_FILENAME, DEFAULT_MAX_BACKUPS

CONFIG_DIR = Path("~/.config/envprof").expanduser()
CONFIG_PATH = CONFIG_DIR / "config.json"

_README_PATH = CONFIG_DIR / "README.md"

_README_CONTENT = """\
# envprof configuration

Edit `config.json` in this directory to point envprof at your application.

## Schema

```json
{
    "env_file": "<path to the live .env file>",
    "profiles_file": "<path to the profile store>",
    "max_backups": 10,
    "backups_enabled": true
}
```

All keys are optional.  `env_file` defaults to `.env` in the directory you
run envprof from; `profiles_file` defaults to `profiles.json` next to this
README.

Backups are written next to the live file as `.env.backup.YYYYMMDDHHMMSS`.
Only the newest `max_backups` are kept.

Keys prefixed with `_` (e.g. `_comment`) are ignored by envprof.
"""


def _default_profiles_file() -> Path:
    return CONFIG_DIR / "profiles.json"


class Settings(BaseModel):
    """Runtime settings for the env file manager and profile store."""

    env_file: Path = Path(DEFAULT_ENV_FILENAME)
    profiles_file: Path = Field(default_factory=_default_profiles_file)
    max_backups: int = Field(default=DEFAULT_MAX_BACKUPS, ge=0)
    backups_enabled: bool = True

    @field_validator("env_file", "profiles_file")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()


class ConfigError(Exception):
    """Raised when config.json exists but cannot be parsed or validated."""


def load_config(path: Path | None = None) -> Settings:
    """Load and validate the config file.

    With no explicit path, reads ``CONFIG_PATH`` and on first run creates the
    config directory, an empty config.json, and a README.  An empty object
    yields default settings.  Raises ConfigError if the file exists but is
    malformed, or if an explicit path does not exist.
    """
    if path is None:
        path = CONFIG_PATH
        if not path.exists():
            _bootstrap()
            return Settings()
    elif not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw: object = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path.name} is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{path.name} must be a JSON object at the top level")

    # Strip reserved/comment keys.
    data = {k: v for k, v in raw.items() if not k.startswith("_")}

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {path.name}: {exc}") from exc


def save_config(settings: Settings, path: Path | None = None) -> None:
    """Persist settings to disk, creating directories as needed."""
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.model_dump(mode="json"), indent=2))


def _bootstrap() -> None:
    """Create the config directory, an empty config.json, and a README."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text("{}\n")
    if not _README_PATH.exists():
        _README_PATH.write_text(_README_CONTENT)
