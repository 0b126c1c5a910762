"""Tabmark - A guitar tablature editor."""

from .model import Document, GridBlock, TextBlock, EditMode, CursorPosition, Selection, TabView
from .editing import TabEditor

__all__ = [
    'Document',
    'GridBlock',
    'TextBlock',
    'EditMode',
    'CursorPosition',
    'Selection',
    'TabView',
    'TabEditor',
]
