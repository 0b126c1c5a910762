"""Rectangle clipboard and system clipboard integration."""

from dataclasses import dataclass
from typing import Optional

import pyperclip

from .constants import EditorConstants


@dataclass
class ClipboardRect:
    """A width x height block of grid characters, one list per track."""
    width: int
    height: int
    data: list[list[str]]

    def cell(self, row: int, col: int) -> str:
        """Character at (row, col); absent cells read as blank."""
        if row < len(self.data) and col < len(self.data[row]):
            return self.data[row][col]
        return EditorConstants.BLANK

    def to_text(self) -> str:
        """Serialize one track per line."""
        return "\n".join("".join(row) for row in self.data)

    @classmethod
    def from_text(cls, text: str) -> Optional["ClipboardRect"]:
        """Parse text copied elsewhere into a rectangle.

        Lines beyond six are dropped and short lines are padded with blanks
        so the result is always rectangular. Non-printing characters become
        blanks. Returns None for empty text.
        """
        lines = text.replace("\r", "").split("\n")
        while lines and lines[-1] == "":
            lines.pop()
        lines = lines[:EditorConstants.TRACK_COUNT]
        if not lines:
            return None
        width = max(len(line) for line in lines)
        if width == 0:
            return None
        data = [[ch if ch.isprintable() and ch != " " else EditorConstants.BLANK
                 for ch in line.ljust(width, EditorConstants.BLANK)]
                for line in lines]
        return cls(width=width, height=len(data), data=data)


class ClipboardManager:
    """Moves clipboard rectangles through the system clipboard as text."""

    @staticmethod
    def copy_rect(rect: ClipboardRect) -> bool:
        """Put the rectangle on the system clipboard; False if unavailable."""
        try:
            pyperclip.copy(rect.to_text())
        except pyperclip.PyperclipException:
            return False
        return True

    @staticmethod
    def paste_text() -> Optional[str]:
        """System clipboard text, or None when it is empty or unavailable."""
        try:
            content = pyperclip.paste()
        except pyperclip.PyperclipException:
            return None
        return content or None

    @staticmethod
    def paste_rect() -> Optional[ClipboardRect]:
        """Read the system clipboard; None when it holds nothing usable."""
        content = ClipboardManager.paste_text()
        if content is None:
            return None
        return ClipboardRect.from_text(content)
