from typing import Optional

from .constants import EditorConstants
from .model import GridBlock, TabView

LABEL_WIDTH = EditorConstants.LABEL_WIDTH


def layout_blocks(blocks) -> tuple[list[str], list[tuple[int, int]]]:
    """Lay the document out as display lines.

    Mirrors the text interchange layout: grid tracks carry their labels,
    a blank line separates blocks, and a docked caption sits directly
    above its grid, indented past the label column.

    Returns (lines, origins) where origins[i] is (block_index, row) for
    each line, or (-1, -1) for separator lines.
    """
    lines: list[str] = []
    origins: list[tuple[int, int]] = []
    last = len(blocks) - 1
    for index, block in enumerate(blocks):
        if isinstance(block, GridBlock):
            for track, label in enumerate(EditorConstants.TRACK_LABELS):
                lines.append(label + block.row(track))
                origins.append((index, track))
            docked = False
        else:
            docked = (block.is_single_line and index < last
                      and isinstance(blocks[index + 1], GridBlock))
            prefix = " " * LABEL_WIDTH if docked else ""
            for row, text in enumerate(block.text.split("\n")):
                lines.append(prefix + text)
                origins.append((index, row))
        if index < last and not docked:
            lines.append("")
            origins.append((-1, -1))
    return lines, origins


class TerminalTabView(TabView):
    """Scrolling terminal projection of the editor state."""
    num_rows: int = 24
    num_cols: int = 80
    top: int = 0  # First document line shown
    left: int = 0  # First display column shown
    lines: list[str] = []
    origins: list[tuple[int, int]] = []
    cursor_line: int = 0  # Cursor row in document lines
    cursor_col: int = 0  # Cursor column in document lines
    visual_cursor_y: int = 0
    visual_cursor_x: int = 0

    def __init__(self, num_rows: int = 24, num_cols: int = 80):
        self.num_rows = num_rows
        self.num_cols = num_cols
        self.top = 0
        self.left = 0
        self.lines = []
        self.origins = []

    def render(self):
        editor = self.editor
        self.lines, self.origins = layout_blocks(editor.document.blocks)
        self._set_cursor_position()
        self._scroll_to_cursor()

    def _first_line_of(self, block_index: int) -> int:
        for i, (block, _) in enumerate(self.origins):
            if block == block_index:
                return i
        return 0

    def _set_cursor_position(self):
        editor = self.editor
        cur = editor.cursor
        first = self._first_line_of(cur.block_index)
        if editor.document.is_grid(cur.block_index):
            self.cursor_line = first + cur.track_index
            self.cursor_col = LABEL_WIDTH + cur.column
        else:
            # Text blocks are edited at their end
            text_lines = editor.document.blocks[cur.block_index].text.split("\n")
            self.cursor_line = first + len(text_lines) - 1
            self.cursor_col = len(self.lines[self.cursor_line]) if self.lines else 0

    def _scroll_to_cursor(self):
        rows = max(1, self.num_rows)
        if self.cursor_line < self.top:
            self.top = self.cursor_line
        elif self.cursor_line >= self.top + rows:
            self.top = self.cursor_line - rows + 1
        self.top = max(0, min(self.top, max(0, len(self.lines) - 1)))
        self.visual_cursor_y = self.cursor_line - self.top

        cols = max(1, self.num_cols)
        if self.cursor_col < self.left:
            # Scrolling back keeps the track labels in view
            self.left = max(0, self.cursor_col - LABEL_WIDTH)
        elif self.cursor_col >= self.left + cols:
            self.left = self.cursor_col - cols + 1
        self.visual_cursor_x = self.cursor_col - self.left

    def visible_lines(self) -> list[str]:
        return [line[self.left:self.left + self.num_cols]
                for line in self.lines[self.top:self.top + self.num_rows]]

    def get_selection_ranges(self) -> Optional[list]:
        """Selection ranges for the visible lines.

        Returns:
            List with a (start_col, end_col) tuple or None per visible line,
            or None if there is no selection.
        """
        sel = self.editor.selection
        if sel is None:
            return None
        ranges = []
        for block, row in self.origins[self.top:self.top + self.num_rows]:
            if block == sel.block_index and sel.start_track <= row <= sel.end_track:
                start = max(0, LABEL_WIDTH + sel.start_column - self.left)
                end = min(self.num_cols, LABEL_WIDTH + sel.end_column + 1 - self.left)
                ranges.append((start, end) if start < end else None)
            else:
                ranges.append(None)
        return ranges

    def status_line(self) -> str:
        editor = self.editor
        cur = editor.cursor
        parts = [
            f"{editor.mode.label}",
            f"Block {cur.block_index + 1}/{len(editor.document.blocks)}",
        ]
        if editor.document.is_grid(cur.block_index):
            parts.append(f"String {EditorConstants.TRACK_NAMES[cur.track_index]}")
            parts.append(f"Col {cur.column + 1}/{editor.line_length}")
            note = editor.note_at_cursor()
            if note:
                parts.append(f"Note {note}")
        else:
            parts.append("Text")
        return " " + " | ".join(parts)
