"""Profile table widget."""

from rich.text import Text
from textual.binding import Binding
from textual.widgets import DataTable

from envprof.constants import ACTIVE_MARKER, PROFILE_COLUMNS
from envprof.profiles import Profile

_ACTIVE_BADGE = Text(ACTIVE_MARKER, style="bold green")


class ProfileTable(DataTable):
    """Scrollable table of stored profiles with vim-style navigation.

    Rows are keyed by profile name, so the cursor can be put back on the
    same profile after a reload.  The active profile carries a green marker
    in the Active column.
    """

    BINDINGS = [
        Binding("j", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
    ]

    def action_cursor_down(self) -> None:
        """Move down one row, wrapping from the last row to the first."""
        if self.row_count == 0:
            return
        if self.cursor_row == self.row_count - 1:
            self.move_cursor(row=0)
        else:
            super().action_cursor_down()

    def action_cursor_up(self) -> None:
        """Move up one row, wrapping from the first row to the last."""
        if self.row_count == 0:
            return
        if self.cursor_row == 0:
            self.move_cursor(row=self.row_count - 1)
        else:
            super().action_cursor_up()

    def on_mount(self) -> None:
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns(*PROFILE_COLUMNS)

    def load(self, profiles: list[Profile]) -> None:
        """Replace table contents, keeping the cursor on the same profile if possible."""
        selected = self.selected_name()
        self.clear()
        for i, profile in enumerate(profiles, start=1):
            self.add_row(
                str(i),
                profile.name,
                profile.label or "",
                _ACTIVE_BADGE if profile.active else "",
                profile.updated_at.strftime("%Y-%m-%d %H:%M"),
                key=profile.name,
            )
        if selected is not None:
            names = [p.name for p in profiles]
            if selected in names:
                self.move_cursor(row=names.index(selected))

    def selected_name(self) -> str | None:
        """Return the name of the highlighted profile, or None if the table is empty."""
        if self.row_count == 0:
            return None
        return str(self.get_cell_at(self.cursor_coordinate._replace(column=1)))
