"""Modal dialogs: confirmation, recovery prompt, the service form and the image form."""

from typing import Optional, Tuple

from pydantic import ValidationError
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select

from sitesmith.editor.mutator import IMAGE_LOCATIONS
from sitesmith.models.editable_element import ServiceItem


DIALOG_CSS = """
{name} {{
    align: center middle;
}}

{name} > Vertical {{
    width: 60;
    height: auto;
    border: thick $accent;
    background: $surface;
    padding: 1 2;
}}

{name} Horizontal {{
    height: auto;
    align: right middle;
}}

{name} Button {{
    margin-left: 1;
}}
"""


class ConfirmScreen(ModalScreen[bool]):
    """Yes/No question. Dismisses with True when confirmed."""

    DEFAULT_CSS = DIALOG_CSS.format(name="ConfirmScreen")

    BINDINGS = [
        ("y", "confirm", "Yes"),
        ("n", "cancel", "No"),
        ("escape", "cancel", "No"),
    ]

    def __init__(self, message: str, **kwargs):
        super().__init__(**kwargs)
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self.message, id="confirm-message")
            with Horizontal():
                yield Button("Yes", variant="error", id="confirm-yes")
                yield Button("No", variant="primary", id="confirm-no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class RecoveryScreen(ConfirmScreen):
    """Offer to restore unsaved edits found in the recovery store."""

    DEFAULT_CSS = DIALOG_CSS.format(name="RecoveryScreen")

    def __init__(self, **kwargs):
        super().__init__(
            "Unsaved changes from a previous session were found. Restore them?",
            **kwargs
        )


class ServiceFormScreen(ModalScreen[Optional[ServiceItem]]):
    """
    Form for a new service card.

    Dismisses with the ServiceItem, or None when cancelled. Blank titles or
    descriptions are reported and keep the form open.
    """

    DEFAULT_CSS = DIALOG_CSS.format(name="ServiceFormScreen")

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label("Add service")
            yield Input(value="bi-box-seam", placeholder="Bootstrap icon class", id="service-icon")
            yield Input(placeholder="Title", id="service-title")
            yield Input(placeholder="Description", id="service-description")
            with Horizontal():
                yield Button("Add", variant="primary", id="service-add")
                yield Button("Cancel", id="service-cancel")

    def on_mount(self) -> None:
        self.query_one("#service-title", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "service-add":
            self.action_submit()
        else:
            self.action_cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_submit()

    def action_submit(self) -> None:
        icon = self.query_one("#service-icon", Input).value.strip() or "bi-box-seam"
        try:
            item = ServiceItem(
                icon=icon,
                title=self.query_one("#service-title", Input).value,
                description=self.query_one("#service-description", Input).value,
            )
        except ValidationError:
            self.app.notify("Title and description are required", severity="error")
            return
        self.dismiss(item)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ImageFormScreen(ModalScreen[Optional[Tuple[str, str, str]]]):
    """
    Form for a new image at one of the known insertion points.

    Dismisses with (location, src, alt), or None when cancelled.
    """

    DEFAULT_CSS = DIALOG_CSS.format(name="ImageFormScreen")

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label("Add image")
            yield Select(
                [(label, selector) for selector, label in IMAGE_LOCATIONS.items()],
                value=next(iter(IMAGE_LOCATIONS)),
                allow_blank=False,
                id="image-location",
            )
            yield Input(placeholder="Image URL", id="image-src")
            yield Input(value="New image", placeholder="Alt text", id="image-alt")
            with Horizontal():
                yield Button("Add", variant="primary", id="image-add")
                yield Button("Cancel", id="image-cancel")

    def on_mount(self) -> None:
        self.query_one("#image-src", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "image-add":
            self.action_submit()
        else:
            self.action_cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_submit()

    def action_submit(self) -> None:
        src = self.query_one("#image-src", Input).value.strip()
        if not src:
            self.app.notify("Image URL is required", severity="error")
            return
        location = self.query_one("#image-location", Select).value
        alt = self.query_one("#image-alt", Input).value.strip() or "New image"
        self.dismiss((location, src, alt))

    def action_cancel(self) -> None:
        self.dismiss(None)
