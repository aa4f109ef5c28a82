"""Key binding overlay, with the files the browser is working on."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Static

from envprof.constants import HELP_TEXT
from envprof.envfile import EnvFileManager


def describe_files(env_file: EnvFileManager) -> str:
    """Summarize the live file and its backup policy for the help overlay."""
    if not env_file.backups_enabled:
        policy = "disabled"
    elif env_file.max_backups == 0:
        policy = "taken and deleted at once (max_backups = 0)"
    else:
        policy = f"newest {env_file.max_backups} kept"
    return "\n".join(
        [
            " Files",
            " ──────────────────────────────",
            f" Live file    {env_file.path}",
            f" Backups      {policy}",
        ]
    )


class HelpScreen(ModalScreen):
    """Shortcut list followed by the live file path and backup policy.

    Any of escape, ? or q, or a click, closes it.
    """

    BINDINGS = [
        Binding("escape", "dismiss", show=False),
        Binding("?", "dismiss", show=False),
        Binding("q", "dismiss", show=False),
    ]

    def __init__(self, env_file: EnvFileManager) -> None:
        super().__init__()
        self.files_text = describe_files(env_file)

    def compose(self) -> ComposeResult:
        with Vertical(id="help-container"):
            yield Static(HELP_TEXT, id="help-text")
            yield Static(self.files_text, id="help-files")

    def on_click(self) -> None:
        self.dismiss()
