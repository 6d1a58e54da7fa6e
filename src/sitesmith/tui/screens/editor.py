"""Editor screen: element list, edit panel and save status.

The list shows the catalog of the working document. Selecting an element
opens the edit panel with its current value; leaving the panel (escape)
applies the value. Saving runs in a worker so the UI stays responsive.
"""

from pathlib import Path
from typing import Optional, Tuple

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Label, ListView

from sitesmith.editor.mutator import IMAGE_LOCATIONS
from sitesmith.editor.session import EditSession
from sitesmith.models.editable_element import ElementType, ServiceItem
from sitesmith.models.page import SaveStatus
from sitesmith.services.file_operations import atomic_write
from sitesmith.tui.screens.dialogs import ConfirmScreen, ImageFormScreen, RecoveryScreen, ServiceFormScreen
from sitesmith.tui.widgets.content_editor import ContentEditor
from sitesmith.tui.widgets.element_list import ElementList
from sitesmith.tui.widgets.status_panel import StatusPanel
import structlog

logger = structlog.get_logger()


class EditorScreen(Screen):
    """Main editing screen for one session."""

    DEFAULT_CSS = """
    EditorScreen {
        layout: vertical;
    }

    #editor-body {
        height: 1fr;
    }

    #element-list {
        width: 2fr;
        border: solid $primary;
    }

    #edit-panel {
        width: 3fr;
        border: solid $accent;
        border-title-align: center;
        layout: vertical;
    }

    #edit-title {
        height: auto;
        padding: 0 1;
    }

    ContentEditor {
        height: 1fr;
    }

    #status-panel {
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save", priority=True),
        Binding("escape", "done", "Done", priority=True),
        ("r", "reset", "Reset"),
        ("a", "add_service", "Add service"),
        ("i", "add_image", "Add image"),
        ("p", "write_preview", "Preview"),
    ]

    def __init__(self, session: EditSession, preview_path: Optional[Path] = None, **kwargs):
        """Initialize the editor screen.

        Args:
            session: Mounted edit session
            preview_path: Where 'p' writes the instrumented preview document
        """
        super().__init__(**kwargs)
        self.session = session
        self.preview_path = preview_path

    def compose(self) -> ComposeResult:
        with Horizontal(id="editor-body"):
            yield ElementList()
            with Vertical(id="edit-panel"):
                yield Label("Select an element to edit", id="edit-title")
                yield ContentEditor()
        yield StatusPanel(self.session)
        yield Footer()

    async def on_mount(self) -> None:
        self.session.on_status_change = lambda status: self._refresh_status()
        self.query_one(ContentEditor).clear()
        await self.refresh_elements()
        self.query_one(ElementList).focus()

        if self.session.recovery_pending is not None:
            self.app.push_screen(RecoveryScreen(), callback=self._on_recovery_choice)

    async def refresh_elements(self) -> None:
        """Reload the element list from the session's catalog."""
        element_list = self.query_one(ElementList)
        keep_id = self.session.selected_element_id or element_list.highlighted_id
        await element_list.load_catalog(self.session.catalog, keep_id=keep_id)
        self._refresh_status()

    def _refresh_status(self) -> None:
        if not self.is_mounted:
            return
        self.query_one(StatusPanel).update_status()

    async def _on_recovery_choice(self, accept: Optional[bool]) -> None:
        self.session.resolve_recovery(bool(accept))
        if accept:
            self.app.notify("Unsaved changes restored")
        await self.refresh_elements()

    def _open_panel(self, element_id: str) -> None:
        if not self.session.select_element(element_id):
            return

        element = self.session.catalog.get(element_id)
        editor = self.query_one(ContentEditor)
        title = self.query_one("#edit-title", Label)

        if element.type == ElementType.SERVICE_CONTAINER:
            title.update(f"{element.display_name}: press 'a' to add a service")
        else:
            title.update(element.display_name)
        editor.load_element(element)
        if not editor.read_only:
            editor.focus()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        element_id = getattr(event.item, "element_id", None)
        if element_id is not None:
            self._open_panel(element_id)

    def _apply_pending_edit(self, done: bool) -> bool:
        """Apply the editor's value to the selected element."""
        element_id = self.session.selected_element_id
        if element_id is None:
            return False

        element = self.session.catalog.get(element_id)
        if element is None or element.type == ElementType.SERVICE_CONTAINER:
            if done:
                self.session.close_panel()
            return False

        return self.session.submit_edit(element_id, self.query_one(ContentEditor).get_content(), done=done)

    def _close_panel(self) -> None:
        self.query_one(ContentEditor).clear()
        self.query_one("#edit-title", Label).update("Select an element to edit")
        self.query_one(ElementList).focus()

    async def action_done(self) -> None:
        """Apply the pending value and go back to the element list."""
        if self.session.selected_element_id is None:
            return
        changed = self._apply_pending_edit(done=True)
        self._close_panel()
        if changed:
            await self.refresh_elements()
        else:
            self._refresh_status()

    async def action_save(self) -> None:
        """Apply the pending value and save in the background."""
        if self.session.save_status == SaveStatus.SAVING:
            return
        if self._apply_pending_edit(done=False):
            await self.refresh_elements()
        self.run_worker(self._save_worker(), name="save", exclusive=True)

    async def _save_worker(self) -> None:
        saved = await self.session.save()
        if saved:
            self.app.notify("Changes saved")
        else:
            self.app.notify(self.session.error_message or "Save failed", severity="error")
        self._refresh_status()

    async def action_reset(self) -> None:
        """Discard unsaved edits, asking first when there are any."""
        if self.session.reset():
            self._close_panel()
            await self.refresh_elements()
            return
        if self.session.recovery_pending is not None:
            return

        self.app.push_screen(
            ConfirmScreen("Discard all unsaved changes?"),
            callback=self._on_reset_confirmed,
        )

    async def _on_reset_confirmed(self, confirmed: Optional[bool]) -> None:
        if confirmed and self.session.reset(force=True):
            self._close_panel()
            await self.refresh_elements()
            self.app.notify("Changes discarded")

    def action_add_service(self) -> None:
        """Open the service form for the selected service container."""
        element_id = self.session.selected_element_id
        element = self.session.catalog.get(element_id) if element_id else None
        if element is None or element.type != ElementType.SERVICE_CONTAINER:
            self.app.notify("Select a services container first", severity="warning")
            return

        self.app.push_screen(
            ServiceFormScreen(),
            callback=lambda item: self._on_service_added(element_id, item),
        )

    async def _on_service_added(self, element_id: str, item: Optional[ServiceItem]) -> None:
        if item is None:
            return
        if self.session.add_service(element_id, item):
            self.app.notify(f"Added service: {item.title}")
            await self.refresh_elements()

    def action_add_image(self) -> None:
        self.app.push_screen(ImageFormScreen(), callback=self._on_image_added)

    async def _on_image_added(self, request: Optional[Tuple[str, str, str]]) -> None:
        if request is None:
            return
        location, src, alt = request
        if self.session.add_image(location, src, alt):
            self.app.notify(f"Added image to {IMAGE_LOCATIONS[location]}")
            await self.refresh_elements()
        else:
            self.app.notify("That part of the page was not found", severity="warning")

    def action_write_preview(self) -> None:
        """Write the instrumented sandbox document for viewing in a browser."""
        if self.preview_path is None:
            self.app.notify("No preview path configured", severity="warning")
            return

        sandbox = self.session.render()
        try:
            atomic_write(self.preview_path, sandbox.html)
        except OSError as e:
            logger.error("preview_write_failed", path=str(self.preview_path), error=str(e))
            self.app.notify(f"Could not write preview: {e}", severity="error")
            return

        logger.info("preview_written", path=str(self.preview_path), surfaces=len(sandbox.surfaces))
        self.app.notify(f"Preview written to {self.preview_path}")
