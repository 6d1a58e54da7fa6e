"""Main Sitesmith TUI application.

The app owns one edit session and shows it on the editor screen. Quitting
with unsaved changes asks for confirmation; the recovery store keeps the
edits either way.
"""

from pathlib import Path
from typing import Optional

from textual.app import App
from textual.binding import Binding
import structlog

from sitesmith.editor.session import EditSession
from sitesmith.tui.screens import ConfirmScreen, EditorScreen

logger = structlog.get_logger()


class SitesmithApp(App):
    """Terminal host for the live website editor."""

    TITLE = "sitesmith"

    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=True, priority=True),
        Binding("q", "quit", "Quit", show=False),
    ]

    def __init__(self, session: EditSession, preview_path: Optional[Path] = None):
        """Initialize the app.

        Args:
            session: Edit session (mounted here if it is not already)
            preview_path: Where the editor writes the sandbox preview
        """
        super().__init__()
        self.session = session
        self.preview_path = preview_path

    def on_mount(self) -> None:
        self.session.mount()
        logger.info("tui_started", file_path=self.session.file_path)
        self.push_screen(EditorScreen(self.session, preview_path=self.preview_path))

    async def action_quit(self) -> None:
        """Quit, confirming first when there are unsaved changes."""
        if not self.session.is_dirty:
            self.exit()
            return

        def on_confirm(confirmed: Optional[bool]) -> None:
            if confirmed:
                logger.info("tui_quit_unsaved", file_path=self.session.file_path)
                self.exit()

        self.push_screen(ConfirmScreen("Quit with unsaved changes?"), callback=on_confirm)
