"""Read-only modal showing the parsed variables of some .env content."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Label

from envprof.domain.dotenv import parse_env, printable, to_env_vars
from envprof.models import EnvVar
from envprof.widgets.env_table import EnvTable


class EnvViewScreen(ModalScreen[None]):
    """Modal listing the variables parsed from a profile or the live file.

    Parsing is for display only: comments, blank lines and malformed lines
    do not appear, and bytes that are not valid UTF-8 show as U+FFFD.
    Esc or q closes the view.
    """

    BINDINGS = [
        Binding("escape", "close", show=False),
        Binding("q", "close", show=False),
        Binding("g", "jump_top", show=False),
        Binding("G", "jump_bottom", show=False),
    ]

    def __init__(self, title: str, content: str) -> None:
        super().__init__()
        self._title = title
        self._vars: list[EnvVar] = to_env_vars(parse_env(printable(content)))

    def compose(self) -> ComposeResult:
        yield Label(f"  {self._title}", id="view-title")
        yield EnvTable(id="view-table")
        yield Label("  j/k move · q close", id="view-hint")

    def on_mount(self) -> None:
        table = self._table()
        table.load(self._vars)
        self.query_one("#view-title", Label).update(
            f"  {self._title}  ·  {len(self._vars)} variable(s)"
        )
        table.focus()

    def _table(self) -> EnvTable:
        return self.query_one("#view-table", EnvTable)

    @property
    def vars(self) -> list[EnvVar]:
        return list(self._vars)

    def action_jump_top(self) -> None:
        self._table().move_cursor(row=0)

    def action_jump_bottom(self) -> None:
        table = self._table()
        table.move_cursor(row=table.row_count - 1)

    def action_close(self) -> None:
        self.dismiss(None)
