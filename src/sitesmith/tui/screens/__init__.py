"""Textual screens for the editor."""

from sitesmith.tui.screens.dialogs import ConfirmScreen, ImageFormScreen, RecoveryScreen, ServiceFormScreen
from sitesmith.tui.screens.editor import EditorScreen

__all__ = [
    "ConfirmScreen",
    "EditorScreen",
    "ImageFormScreen",
    "RecoveryScreen",
    "ServiceFormScreen",
]
