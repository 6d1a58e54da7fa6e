"""ElementList widget listing the catalog of editable elements."""

from typing import Optional

from rich.text import Text
from textual.widgets import Label, ListItem, ListView

from sitesmith.models.editable_element import Catalog, EditableElement, ElementType


TYPE_LABELS = {
    ElementType.TEXT: "text",
    ElementType.IMAGE: "image",
    ElementType.BACKGROUND_IMAGE: "background",
    ElementType.SERVICE_CONTAINER: "services",
}


class ElementItem(ListItem):
    """List row for one catalog element."""

    def __init__(self, element: EditableElement) -> None:
        label = Text()
        label.append(f"{TYPE_LABELS[element.type]:<11}", style="dim")
        label.append(element.display_name)
        super().__init__(Label(label))
        self.element_id = element.id


class ElementList(ListView):
    """Selectable list of the elements the user can edit."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, id="element-list", **kwargs)

    async def load_catalog(self, catalog: Catalog, keep_id: Optional[str] = None) -> None:
        """Replace the rows with the catalog's elements.

        Args:
            catalog: Catalog to display
            keep_id: Element to keep highlighted, if still present
        """
        await self.clear()
        items = [ElementItem(element) for element in catalog.elements]
        await self.extend(items)

        index = 0
        for position, item in enumerate(items):
            if item.element_id == keep_id:
                index = position
                break
        self.index = index if items else None

    @property
    def highlighted_id(self) -> Optional[str]:
        """Element id of the highlighted row."""
        item = self.highlighted_child
        if isinstance(item, ElementItem):
            return item.element_id
        return None
