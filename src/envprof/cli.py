"""Command-line interface for managing environment profiles."""

import contextlib
import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import NoReturn

import typer
from pydantic import ValidationError

from envprof.config import ConfigError, load_config
from envprof.domain.dotenv import decode_env, encode_env
from envprof.envfile import EnvFileManager
from envprof.errors import EnvProfError
from envprof.profiles import JsonProfileStore, Profile
from envprof.service import ProfileService

app = typer.Typer(
    help="Store, switch between, and apply named .env profiles",
    no_args_is_help=True,
)

# Module-level defaults for Typer options
_CONFIG_HELP = "Path to config.json (defaults to ~/.config/envprof/config.json)"
_ENV_FILE_HELP = "Live .env file to manage (overrides config)"
_PROFILES_HELP = "Profile store JSON file (overrides config)"
_FILE_HELP = "Read content from this file instead of stdin"


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _describe(exc: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one line per field."""
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


@contextlib.contextmanager
def _reporting_errors() -> Iterator[None]:
    """Turn expected failures into an error message and exit code 1."""
    try:
        yield
    except ValidationError as exc:
        _fail(_describe(exc))
    except (EnvProfError, OSError) as exc:
        _fail(str(exc))


def _read_content(file: Path | None) -> str:
    if file is not None:
        return decode_env(file.read_bytes())
    return decode_env(typer.get_binary_stream("stdin").read())


def _service(ctx: typer.Context) -> ProfileService:
    service: ProfileService = ctx.obj
    return service


def _echo_raw(text: str, nl: bool = True) -> None:
    """Echo text as the bytes it was read from, valid UTF-8 or not."""
    typer.echo(encode_env(text), nl=nl)


def _print_env(env: dict[str, str]) -> None:
    for key, value in env.items():
        _echo_raw(f"{key}={value}")


def _profile_line(profile: Profile) -> str:
    marker = "*" if profile.active else " "
    label = f"  ({profile.label})" if profile.label else ""
    updated = profile.updated_at.strftime("%Y-%m-%d %H:%M:%S")
    return f"{marker} {profile.name}{label}  updated {updated}"


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),  # noqa: B008
    env_file: Path | None = typer.Option(  # noqa: B008
        None, "--env-file", "-e", help=_ENV_FILE_HELP
    ),
    profiles: Path | None = typer.Option(  # noqa: B008
        None, "--profiles", "-p", help=_PROFILES_HELP
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    """Load settings and wire up the profile service for the subcommand."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_config(config)
    except ConfigError as exc:
        _fail(str(exc))

    overrides: dict[str, Path] = {}
    if env_file is not None:
        overrides["env_file"] = env_file
    if profiles is not None:
        overrides["profiles_file"] = profiles
    settings = settings.model_copy(update=overrides)

    with _reporting_errors():
        store = JsonProfileStore(settings.profiles_file)
    ctx.obj = ProfileService(store, EnvFileManager.from_settings(settings))


@app.command("list")
def list_profiles(ctx: typer.Context) -> None:
    """List profiles by name; the active one is marked with *."""
    profiles = _service(ctx).list_profiles()
    if not profiles:
        typer.echo("No profiles yet. Create one with: envprof create NAME --from-current")
        return
    for profile in profiles:
        typer.echo(_profile_line(profile))


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile name"),
    parsed: bool = typer.Option(False, "--parsed", help="Print parsed KEY=value pairs"),
) -> None:
    """Print a profile's content."""
    with _reporting_errors():
        profile = _service(ctx).get(name)
    if parsed:
        _print_env(profile.variables())
    else:
        typer.echo(profile.content, nl=False)


@app.command()
def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Unique profile name"),
    label: str | None = typer.Option(None, "--label", "-l", help="Human-readable label"),
    file: Path | None = typer.Option(None, "--file", "-f", help=_FILE_HELP),  # noqa: B008
    from_current: bool = typer.Option(
        False, "--from-current", help="Copy the live .env file's content"
    ),
) -> None:
    """Create a profile from a file, stdin, or the live .env file."""
    service = _service(ctx)
    if file is not None and from_current:
        _fail("--file and --from-current are mutually exclusive")
    with _reporting_errors():
        if from_current:
            profile = service.create_from_current(name, label)
        else:
            profile = service.create(name, _read_content(file), label)
    typer.echo(f"Created profile {profile.name}")


@app.command()
def update(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile to change"),
    new_name: str | None = typer.Option(None, "--name", "-n", help="Rename the profile"),
    label: str | None = typer.Option(
        None, "--label", "-l", help="New label (empty string clears it)"
    ),
    file: Path | None = typer.Option(  # noqa: B008
        None, "--file", "-f", help="Replace content with this file's content"
    ),
) -> None:
    """Change a profile's name, label, or content."""
    if new_name is None and label is None and file is None:
        _fail("Nothing to update; pass --name, --label or --file")
    with _reporting_errors():
        content = decode_env(file.read_bytes()) if file is not None else None
        profile = _service(ctx).update(name, new_name=new_name, label=label, content=content)
    typer.echo(f"Updated profile {profile.name}")


@app.command()
def delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a profile. The live .env file is left as it is."""
    if not yes:
        typer.confirm(f"Delete profile {name}?", abort=True)
    with _reporting_errors():
        _service(ctx).delete(name)
    typer.echo(f"Deleted profile {name}")


@app.command()
def activate(ctx: typer.Context, name: str = typer.Argument(..., help="Profile to apply")) -> None:
    """Mark a profile active and write its content to the live .env file."""
    service = _service(ctx)
    with _reporting_errors():
        service.activate(name)
    typer.echo(f"Activated {name} -> {service.env_file.path}")


@app.command()
def deactivate(ctx: typer.Context, name: str = typer.Argument(..., help="Profile")) -> None:
    """Clear a profile's active flag without touching the live .env file."""
    with _reporting_errors():
        _service(ctx).deactivate(name)
    typer.echo(f"Deactivated {name}")


@app.command()
def current(
    ctx: typer.Context,
    parsed: bool = typer.Option(False, "--parsed", help="Print parsed KEY=value pairs"),
) -> None:
    """Print the live .env file's content."""
    service = _service(ctx)
    if parsed:
        _print_env(service.env_file.parsed())
    else:
        _echo_raw(service.current(), nl=False)


@app.command()
def write(
    ctx: typer.Context,
    file: Path | None = typer.Option(None, "--file", "-f", help=_FILE_HELP),  # noqa: B008
) -> None:
    """Overwrite the live .env file directly (a backup is taken first)."""
    service = _service(ctx)
    with _reporting_errors():
        service.write_current(_read_content(file))
    typer.echo(f"Wrote {service.env_file.path}")


@app.command()
def backups(ctx: typer.Context) -> None:
    """List backups of the live .env file, newest first."""
    with _reporting_errors():
        entries = _service(ctx).env_file.list_backups()
    if not entries:
        typer.echo("No backups")
        return
    for entry in entries:
        typer.echo(f"{entry.name}  {entry.created_at:%Y-%m-%d %H:%M:%S}")


@app.command()
def restore(
    ctx: typer.Context,
    backup: str = typer.Argument(..., help="Backup file name, e.g. .env.backup.20250111093000"),
) -> None:
    """Replace the live .env file with a backup's content."""
    env_file = _service(ctx).env_file
    with _reporting_errors():
        env_file.restore(env_file.get_backup(backup))
    typer.echo(f"Restored {env_file.path} from {backup}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Show the active profile and whether the live .env file still matches it."""
    service = _service(ctx)
    result = service.status()
    typer.echo(f"Live file: {service.env_file.path}")
    if result.active is None:
        typer.echo("Active profile: none")
        return
    typer.echo(f"Active profile: {result.active.name}")
    if not result.live_exists:
        typer.echo("Live file is missing")
    elif result.in_sync:
        typer.echo("Live file matches the active profile")
    else:
        typer.echo("Live file differs from the active profile")
    if result.drifted:
        sys.exit(1)


@app.command()
def tui(ctx: typer.Context) -> None:
    """Open the interactive profile browser."""
    from textual.logging import TextualHandler

    from envprof.app import EnvProfApp

    # Stream handlers would draw over the UI; route records to textual's log.
    logging.getLogger().handlers = [TextualHandler()]
    EnvProfApp(_service(ctx)).run()


if __name__ == "__main__":
    app()
