"""StatusPanel widget showing the session's save status."""

from textual.widgets import Static

from sitesmith.editor.session import EditSession
from sitesmith.models.page import SaveStatus


class StatusPanel(Static):
    """One-line status: save progress, last save result and unsaved changes."""

    def __init__(self, session: EditSession, *args, **kwargs):
        """Initialize StatusPanel.

        Args:
            session: Edit session whose status is displayed
        """
        super().__init__("", *args, id="status-panel", markup=False, **kwargs)
        self.session = session

    def on_mount(self) -> None:
        """Set initial content when widget is mounted."""
        self.update_status()

    def update_status(self) -> None:
        """Re-render from the current session state."""
        self.update(self.render_status())

    def render_status(self) -> str:
        """Status text for the current session state."""
        parts = []
        status = self.session.save_status

        if status == SaveStatus.SAVING:
            parts.append("Saving...")
        elif status == SaveStatus.SUCCESS:
            parts.append("Changes saved")
        elif status == SaveStatus.ERROR:
            message = self.session.error_message or "Save failed"
            parts.append(f"⚠ {message}")

        if self.session.is_dirty:
            parts.append("Unsaved changes")

        return " | ".join(parts) if parts else "Ready"
