"""Textual widget components."""

from sitesmith.tui.widgets.content_editor import ContentEditor
from sitesmith.tui.widgets.element_list import ElementItem, ElementList
from sitesmith.tui.widgets.status_panel import StatusPanel

__all__ = [
    "ContentEditor",
    "ElementItem",
    "ElementList",
    "StatusPanel",
]
