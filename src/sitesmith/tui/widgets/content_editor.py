"""Editor for the value of the selected element.

Text elements are edited as plain text, images and background images as a
single URL. Service containers are shown read-only; cards are added through
the service form instead.
"""

from typing import Optional

from textual.widgets import TextArea

from sitesmith.models.editable_element import EditableElement, ElementType


BORDER_TITLES = {
    ElementType.TEXT: "Text",
    ElementType.IMAGE: "Image URL",
    ElementType.BACKGROUND_IMAGE: "Background URL",
    ElementType.SERVICE_CONTAINER: "Services (read-only)",
}


class ContentEditor(TextArea):
    """TextArea bound to one catalog element at a time."""

    def __init__(self, **kwargs):
        super().__init__("", id="content-editor", **kwargs)
        self.show_line_numbers = False
        self.read_only = True
        self.element_type: Optional[ElementType] = None

    def on_focus(self) -> None:
        self.styles.border = ("heavy", "blue")

    def on_blur(self) -> None:
        self.styles.border = ("solid", "white")

    def load_element(self, element: EditableElement) -> None:
        """Show an element's current value and lock the editor if it isn't editable."""
        self.element_type = element.type
        self.border_title = BORDER_TITLES[element.type]
        self.text = element.content
        self.read_only = element.type == ElementType.SERVICE_CONTAINER

    def get_content(self) -> str:
        """
        The value to submit for the loaded element.

        URLs can't span lines, so stray line breaks in a pasted URL are dropped.
        """
        if self.element_type in (ElementType.IMAGE, ElementType.BACKGROUND_IMAGE):
            return "".join(line.strip() for line in self.text.splitlines())
        return self.text.strip()

    def clear(self) -> None:
        self.element_type = None
        self.border_title = None
        self.text = ""
        self.read_only = True
