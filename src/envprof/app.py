"""Interactive profile browser."""

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header

from envprof.constants import APP_SUBTITLE, APP_TITLE
from envprof.errors import EnvProfError
from envprof.profiles import Profile
from envprof.screens.confirm import ConfirmScreen
from envprof.screens.env_view import EnvViewScreen
from envprof.screens.help import HelpScreen
from envprof.service import ProfileService
from envprof.widgets.profile_table import ProfileTable


class EnvProfApp(App):
    """envprof — browse and activate .env profiles."""

    CSS_PATH = "app.tcss"
    TITLE = APP_TITLE

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("?", "toggle_help", "Help"),
        Binding("a", "activate", "Activate"),
        Binding("v", "view_profile", "View"),
        Binding("c", "view_current", "Current .env"),
        Binding("d", "delete_profile", "dd Delete"),
        Binding("r", "reload", "Reload"),
        Binding("g", "jump_top", show=False),
        Binding("G", "jump_bottom", show=False),
    ]

    def __init__(self, service: ProfileService) -> None:
        super().__init__()
        self._service = service
        self._profiles: list[Profile] = []
        self._g_pressed: bool = False
        self._d_pressed: bool = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield ProfileTable(id="profile-table")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_table()
        self._get_table().focus()

    def _get_table(self) -> ProfileTable:
        return self.query_one("#profile-table", ProfileTable)

    def _refresh_table(self) -> None:
        self._profiles = self._service.list_profiles()
        self._get_table().load(self._profiles)
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        status = self._service.status()
        base = f"{APP_SUBTITLE} · {self._service.env_file.path}"
        if status.active is None:
            self.sub_title = f"{base} · no active profile"
        elif status.drifted:
            self.sub_title = f"{base} · {status.active.name} (modified)"
        else:
            self.sub_title = f"{base} · {status.active.name}"

    def _selected(self) -> Profile | None:
        name = self._get_table().selected_name()
        if name is None:
            return None
        return next((p for p in self._profiles if p.name == name), None)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter on a row activates it, same as pressing a."""
        event.stop()
        self.action_activate()

    def action_toggle_help(self) -> None:
        self.push_screen(HelpScreen(self._service.env_file))

    def action_reload(self) -> None:
        """Re-read the profile store from disk."""
        try:
            self._service.store.reload()
        except EnvProfError as exc:
            self.notify(f"Reload failed: {exc}", severity="error", timeout=8)
            return
        self._refresh_table()
        self.notify("Reloaded profiles", timeout=2)

    def _apply_activate(self, name: str) -> None:
        """Activate a profile and sync the table.

        A failed file write leaves the store naming the new profile; the
        subtitle then shows it as modified.
        """
        try:
            self._service.activate(name)
        except (EnvProfError, OSError) as exc:
            self.notify(f"Activate failed: {exc}", severity="error", timeout=8)
        else:
            self.notify(f"Activated {name}", timeout=2)
        self._refresh_table()

    def action_activate(self) -> None:
        """Ask for confirmation, then apply the selected profile."""
        profile = self._selected()
        if profile is None:
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._apply_activate(profile.name)
            self._get_table().focus()

        self.push_screen(
            ConfirmScreen(
                f"Activate  {profile.name}?",
                f"Overwrites {self._service.env_file.path}",
            ),
            on_confirm,
        )

    def action_view_profile(self) -> None:
        profile = self._selected()
        if profile is None:
            return
        self.push_screen(EnvViewScreen(profile.name, profile.content))

    def action_view_current(self) -> None:
        self.push_screen(
            EnvViewScreen(str(self._service.env_file.path), self._service.current())
        )

    def action_delete_profile(self) -> None:
        """Implement vim-style dd: delete the selected profile on second d press."""
        if self._d_pressed:
            self._d_pressed = False
            profile = self._selected()
            if profile is None:
                return

            def on_confirm(confirmed: bool | None) -> None:
                if confirmed:
                    try:
                        self._service.delete(profile.name)
                    except EnvProfError as exc:
                        self.notify(f"Delete failed: {exc}", severity="error", timeout=8)
                    else:
                        self.notify(f"Deleted {profile.name}", timeout=2)
                    self._refresh_table()
                self._get_table().focus()

            self.push_screen(ConfirmScreen(f"Delete  {profile.name}?"), on_confirm)
        else:
            self._d_pressed = True
            self.set_timer(0.5, self._reset_d)

    def _reset_d(self) -> None:
        self._d_pressed = False

    def action_jump_top(self) -> None:
        """Implement vim-style gg: move to the first row on the second g press."""
        if self._g_pressed:
            self._g_pressed = False
            self._get_table().move_cursor(row=0)
        else:
            self._g_pressed = True
            self.set_timer(0.5, self._reset_g)

    def _reset_g(self) -> None:
        self._g_pressed = False

    def action_jump_bottom(self) -> None:
        """Move cursor to the last row (vim G)."""
        table = self._get_table()
        table.move_cursor(row=table.row_count - 1)
