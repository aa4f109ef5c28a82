"""Environment variable table widget."""

from textual.binding import Binding
from textual.widgets import DataTable

from envprof.constants import VAR_COLUMNS
from envprof.models import EnvVar


class EnvTable(DataTable):
    """Read-only table of parsed variables.

    Rows are keyed by variable name; parsing already collapsed duplicate
    keys, so keys are unique.
    """

    BINDINGS = [
        Binding("j", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
    ]

    def on_mount(self) -> None:
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns(*VAR_COLUMNS)

    def load(self, vars: list[EnvVar]) -> None:
        """Replace table contents with a new list of variables."""
        self.clear()
        for i, var in enumerate(vars, start=1):
            self.add_row(str(i), var.key, var.value, key=var.key)
