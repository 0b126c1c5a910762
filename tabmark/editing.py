"""Editing engine for tab documents.

TabEditor owns the document, cursor, selection, edit mode, clipboard and
undo history of one editor instance. Every mutating operation follows the
same order: undo snapshot, mutation, cursor update, then render and
persistence through the optional view and store collaborators.
"""

import logging
import time
from typing import Callable, Optional

from .clipboard import ClipboardRect
from .constants import EditorConstants
from .interchange import format_blocks, parse_text
from .model import (
    BAR,
    BLANK,
    TRACK_COUNT,
    CursorPosition,
    Document,
    EditMode,
    GridBlock,
    Selection,
    SelectionAnchor,
    TabView,
    TextBlock,
    clamp,
    clamp_line_length,
)
from .notes import note_at
from .undo import EditorSnapshot, UndoManager

logger = logging.getLogger(__name__)

ALL_TRACKS = list(range(TRACK_COUNT))

BACKWARD = "backward"
FORWARD = "forward"


def _is_meaningful(ch: str) -> bool:
    return ch not in (BLANK, BAR)


class TabEditor:
    """Single owner of all editing state."""

    def __init__(self, document: Optional[Document] = None,
                 view: Optional[TabView] = None,
                 store=None,
                 clock: Callable[[], float] = time.monotonic,
                 max_undo: int = EditorConstants.MAX_UNDO_STEPS):
        self.document = document or Document()
        self.cursor = CursorPosition()
        self.selection: Optional[Selection] = None
        self.mode = EditMode.REPLACE
        self.clipboard: Optional[ClipboardRect] = None
        self.undo_manager = UndoManager(max_undo)
        self.view = view
        if view is not None:
            view._editor = self
        self.store = store
        self._clock = clock
        self._undoing = False
        self._anchor: Optional[SelectionAnchor] = None
        # (block index, time) of the last text keystroke, for snapshot coalescing
        self._last_text_edit: Optional[tuple[int, float]] = None

    @property
    def line_length(self) -> int:
        return self.document.line_length

    @property
    def blocks(self):
        return self.document.blocks

    # --- State plumbing ---

    def _refresh(self):
        if self.view is not None:
            self.view.render()

    def _changed(self):
        """Re-clamp, then hand the consistent state to the view and the store."""
        self._clamp_cursor()
        self._validate_selection()
        self._refresh()
        if self.store is not None:
            self.store.save(self)

    def _place_cursor(self, block_index: int, track_index: int, column: int):
        previous_block = self.cursor.block_index
        self.cursor = CursorPosition(
            block_index=clamp(block_index, 0, len(self.document.blocks) - 1),
            track_index=clamp(track_index, 0, TRACK_COUNT - 1),
            column=clamp(column, 0, self.line_length - 1),
        )
        if self.cursor.block_index != previous_block:
            self._anchor = None
            if self.selection is not None and self.selection.block_index != self.cursor.block_index:
                self.selection = None

    def _clamp_cursor(self):
        self._place_cursor(self.cursor.block_index, self.cursor.track_index, self.cursor.column)

    def _validate_selection(self):
        sel = self.selection
        if sel is None:
            return
        if not self.document.is_grid(sel.block_index):
            self._drop_selection()
            return
        self.selection = Selection.normalized(
            sel.block_index, sel.start_track, sel.start_column,
            sel.end_track, sel.end_column, self.line_length)

    def _drop_selection(self):
        self.selection = None
        self._anchor = None

    def _cursor_grid(self) -> Optional[GridBlock]:
        return self.document.grid_at(self.cursor.block_index)

    def _active_selection(self) -> Optional[Selection]:
        sel = self.selection
        if sel is None or sel.block_index != self.cursor.block_index:
            return None
        if not self.document.is_grid(sel.block_index):
            return None
        return sel

    def _advance(self):
        if self.cursor.column < self.line_length - 1:
            self._place_cursor(self.cursor.block_index, self.cursor.track_index,
                               self.cursor.column + 1)

    def restore(self, document: Document, cursor: Optional[CursorPosition] = None,
                mode: Optional[EditMode] = None):
        """Replace the live state without recording undo history (used on load)."""
        self.document = document
        self.document.ensure_not_empty()
        if mode is not None:
            self.mode = mode
        self._drop_selection()
        self._last_text_edit = None
        cursor = cursor or CursorPosition()
        self._place_cursor(cursor.block_index, cursor.track_index, cursor.column)
        self._refresh()

    # --- Undo ---

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(
            blocks=self.document.copy_blocks(),
            cursor=self.cursor.copy(),
            mode=self.mode,
            line_length=self.document.line_length,
        )

    def save_snapshot(self):
        if self._undoing:
            return
        self.undo_manager.push(self.snapshot())
        self._last_text_edit = None

    def undo(self) -> bool:
        """Restore the most recent snapshot. Returns False if there is none."""
        snapshot = self.undo_manager.pop()
        if snapshot is None:
            logger.debug("Undo refused: history is empty")
            return False
        self._undoing = True
        try:
            self.document = Document([block.copy() for block in snapshot.blocks],
                                     snapshot.line_length)
            self.mode = snapshot.mode
            self.cursor = snapshot.cursor.copy()
            self._drop_selection()
            self._last_text_edit = None
            self._changed()
        finally:
            self._undoing = False
        return True

    # --- Cursor and selection ---

    def set_cursor(self, block_index: int, track_index: int, column: int):
        self._place_cursor(block_index, track_index, column)
        self._refresh()

    def move_cursor(self, d_block: int, d_track: int, d_col: int):
        self.set_cursor(self.cursor.block_index + d_block,
                        self.cursor.track_index + d_track,
                        self.cursor.column + d_col)

    def move_to_line_start(self):
        self.set_cursor(self.cursor.block_index, self.cursor.track_index, 0)

    def move_to_line_end(self):
        self.set_cursor(self.cursor.block_index, self.cursor.track_index, self.line_length - 1)

    def set_selection(self, block_index: int, track_a: int, col_a: int,
                      track_b: int, col_b: int) -> bool:
        """Select the rectangle spanned by two corners of one grid block.

        The first corner becomes the anchor and the cursor moves to the
        second, so a later extend_selection keeps growing from the anchor.
        """
        if not self.document.is_grid(block_index):
            self.clear_selection()
            return False
        self._place_cursor(block_index, track_b, col_b)
        self._anchor = SelectionAnchor(
            block_index,
            clamp(track_a, 0, TRACK_COUNT - 1),
            clamp(col_a, 0, self.line_length - 1),
        )
        self.selection = Selection.normalized(block_index, track_a, col_a,
                                              track_b, col_b, self.line_length)
        self._refresh()
        return True

    def extend_selection(self, d_block: int, d_track: int, d_col: int):
        """Move the cursor and stretch the selection from its anchor."""
        if self._anchor is None:
            sel = self._active_selection()
            if sel is not None:
                self._anchor = SelectionAnchor(sel.block_index, sel.start_track, sel.start_column)
            else:
                self._anchor = SelectionAnchor(self.cursor.block_index,
                                               self.cursor.track_index,
                                               self.cursor.column)
        self._place_cursor(self.cursor.block_index + d_block,
                           self.cursor.track_index + d_track,
                           self.cursor.column + d_col)
        cur = self.cursor
        if self._anchor is None:
            # Crossed into another block: restart the anchor there
            self._anchor = SelectionAnchor(cur.block_index, cur.track_index, cur.column)
            self.selection = None
        elif self.document.is_grid(cur.block_index):
            self.selection = Selection.normalized(
                cur.block_index, self._anchor.track_index, self._anchor.column,
                cur.track_index, cur.column, self.line_length)
        self._refresh()

    def clear_selection(self):
        self._drop_selection()
        self._refresh()

    # --- Modes ---

    def toggle_mode(self) -> EditMode:
        """Cycle Replace -> Shift -> Insert -> Replace."""
        self.save_snapshot()
        self.mode = self.mode.next()
        self._changed()
        return self.mode

    def set_mode(self, mode: EditMode) -> bool:
        if mode == self.mode:
            return False
        self.save_snapshot()
        self.mode = mode
        self._changed()
        return True

    # --- Block structure ---

    def new_grid_block(self) -> int:
        """Insert an empty grid after the cursor block and move into it."""
        self.save_snapshot()
        self._drop_selection()
        at = self.cursor.block_index + 1
        self.document.insert_block(at, GridBlock.empty(self.line_length))
        self._place_cursor(at, 0, 0)
        self._changed()
        return at

    def new_text_block(self, text: str = "") -> int:
        self.save_snapshot()
        self._drop_selection()
        at = self.cursor.block_index + 1
        self.document.insert_block(at, TextBlock(text))
        self._place_cursor(at, 0, 0)
        self._changed()
        return at

    def delete_block(self, index: Optional[int] = None) -> bool:
        """Delete a block (the cursor block by default).

        Refused when it is the only block or the index is out of range.
        """
        if index is None:
            index = self.cursor.block_index
        count = len(self.document.blocks)
        if count <= 1 or not 0 <= index < count:
            logger.debug("Delete of block %s refused (%d blocks)", index, count)
            return False
        self.save_snapshot()
        self._drop_selection()
        self.document.delete_block(index)
        block = self.cursor.block_index
        if block >= len(self.document.blocks):
            block = len(self.document.blocks) - 1
        elif block >= index and block > 0:
            block -= 1
        self._place_cursor(block, self.cursor.track_index, self.cursor.column)
        self._changed()
        return True

    def move_block(self, index: int, direction: int) -> bool:
        count = len(self.document.blocks)
        new_index = index + direction
        if direction not in (-1, 1) or not 0 <= index < count or not 0 <= new_index < count:
            logger.debug("Move of block %s by %s refused", index, direction)
            return False
        self.save_snapshot()
        self._drop_selection()
        self.document.move_block(index, direction)
        block = self.cursor.block_index
        if block == index:
            block = new_index
        elif block == new_index:
            block = index
        self._place_cursor(block, self.cursor.track_index, self.cursor.column)
        self._changed()
        return True

    def resize_line_length(self, new_length) -> int:
        """Resize every grid; the length is clamped to the legal range."""
        length = clamp_line_length(new_length)
        if length == self.line_length:
            return length
        self.save_snapshot()
        self._drop_selection()
        self.document.resize_line_length(length)
        self._changed()
        return length

    def clear_all(self):
        self.save_snapshot()
        self._drop_selection()
        self.document.blocks = [GridBlock.empty(self.line_length)]
        self._place_cursor(0, 0, 0)
        self._changed()

    # --- Character input ---

    def insert_character(self, ch: str, force_full_line: bool = False) -> bool:
        """Type one character into the cursor grid according to the edit mode.

        Args:
            ch: A single printable character. A space is stored as a blank.
            force_full_line: In Insert mode, shift all six tracks instead of
                the bar-aware single-track insert.

        Returns:
            True if the grid was modified
        """
        grid = self._cursor_grid()
        if grid is None or len(ch) != 1 or not ch.isprintable():
            return False
        if ch == " ":
            ch = BLANK
        self.save_snapshot()
        self._drop_selection()
        if ch == BAR:
            grid.set_bar(self.cursor.column)
            self._advance()
        elif self.mode == EditMode.SHIFT:
            self._shift_insert(grid, ch, ALL_TRACKS)
        elif self.mode == EditMode.INSERT:
            if force_full_line:
                self._shift_insert(grid, ch, ALL_TRACKS)
            else:
                self._smart_insert(grid, ch)
        else:
            self._overwrite(grid, ch)
        self._changed()
        return True

    def insert_bar(self) -> bool:
        """Write a full bar at the cursor column without moving the cursor."""
        grid = self._cursor_grid()
        if grid is None:
            return False
        self.save_snapshot()
        self._drop_selection()
        grid.set_bar(self.cursor.column)
        self._changed()
        return True

    def _overwrite(self, grid: GridBlock, ch: str):
        track, col = self.cursor.track_index, self.cursor.column
        if grid.tracks[track][col] == BAR:
            grid.clear_column(col)
        grid.tracks[track][col] = ch
        self._advance()

    def _smart_insert(self, grid: GridBlock, ch: str):
        track, col = self.cursor.track_index, self.cursor.column
        row = grid.tracks[track]
        if row[col] == BAR and grid.is_full_bar(col):
            # Writing on a bar moves the whole column so the bar stays aligned
            self._shift_insert(grid, ch, ALL_TRACKS)
            return
        bar = grid.find_next_bar(track, col)
        if bar != -1 and grid.is_full_bar(bar) and BLANK in row[col:bar]:
            # Only the cell just before the bar is checked for content
            if _is_meaningful(row[bar - 1]):
                self._shift_insert(grid, ch, [track])
                return
            row[col + 1:bar] = row[col:bar - 1]
            row[col] = ch
            self._advance()
            return
        self._shift_insert(grid, ch, [track])

    def _shift_insert(self, grid: GridBlock, ch: str, tracks: list[int]):
        """Shift tracks right from the cursor, write ch, cascade the overflow."""
        track, col = self.cursor.track_index, self.cursor.column
        overflow = self._shift_right(grid, tracks, col)
        if len(tracks) == TRACK_COUNT:
            for t in tracks:
                if t != track:
                    grid.tracks[t][col] = BLANK
        if grid.tracks[track][col] == BAR:
            grid.clear_column(col)
        grid.tracks[track][col] = ch
        self._cascade(self.cursor.block_index, tracks, overflow)
        self._advance()

    @staticmethod
    def _shift_right(grid: GridBlock, tracks: list[int], start: int) -> list[tuple[int, str]]:
        """Shift cells right by one from start; return the evicted content.

        The cell at start keeps its old value. Blanks and bars falling off
        the right edge are not content and are dropped.
        """
        overflow = []
        for t in tracks:
            row = grid.tracks[t]
            if _is_meaningful(row[-1]):
                overflow.append((t, row[-1]))
            row[start + 1:] = row[start:-1]
        return overflow

    def _cascade(self, block_index: int, tracks: list[int], overflow: list[tuple[int, str]]):
        index = block_index
        while overflow:
            next_index = index + 1
            grid = self.document.grid_at(next_index)
            if grid is None:
                new_grid = GridBlock.empty(self.line_length)
                for t, ch in overflow:
                    new_grid.tracks[t][0] = ch
                self.document.insert_block(next_index, new_grid)
                logger.debug("Overflow of %d cells created block %d", len(overflow), next_index)
                return
            next_overflow = self._shift_right(grid, tracks, 0)
            for t in tracks:
                grid.tracks[t][0] = BLANK
            for t, ch in overflow:
                grid.tracks[t][0] = ch
            overflow = next_overflow
            index = next_index

    # --- Deletion ---

    def delete_character(self, direction: str = BACKWARD) -> bool:
        """Delete at the cursor (or the selection) according to the edit mode.

        A selection is always removed by shifting its tracks left. Without
        one, Replace clears the cell, Shift removes the whole column and
        Insert removes the cell from the current measure only. Backward
        deletion then moves the cursor one column left.
        """
        if direction not in (BACKWARD, FORWARD):
            logger.debug("Unknown delete direction %r", direction)
            return False
        grid = self._cursor_grid()
        if grid is None:
            return False
        sel = self._active_selection()
        self.save_snapshot()
        if sel is not None:
            self._remove_selection(grid, sel)
        else:
            track, col = self.cursor.track_index, self.cursor.column
            if self.mode == EditMode.REPLACE:
                self._clear_cell(grid, track, col)
            elif self.mode == EditMode.SHIFT:
                self._delete_span(grid, ALL_TRACKS, col, 1)
            else:
                self._smart_delete(grid, direction)
        if direction == BACKWARD:
            self._place_cursor(self.cursor.block_index, self.cursor.track_index,
                               self.cursor.column - 1)
        self._changed()
        return True

    def delete_selection(self) -> bool:
        """Remove the selected rectangle, pulling the rest of its tracks left."""
        sel = self._active_selection()
        if sel is None:
            return False
        self.save_snapshot()
        self._remove_selection(self.document.grid_at(sel.block_index), sel)
        self._changed()
        return True

    def _remove_selection(self, grid: GridBlock, sel: Selection):
        self._delete_span(grid, sel.tracks, sel.start_column, sel.width)
        self._drop_selection()
        self._place_cursor(sel.block_index, sel.start_track, sel.start_column)

    def clear_selection_or_cell(self) -> bool:
        """Blank the selection (or the cursor cell) without shifting anything."""
        grid = self._cursor_grid()
        if grid is None:
            return False
        sel = self._active_selection()
        self.save_snapshot()
        if sel is not None:
            for t in sel.tracks:
                grid.tracks[t][sel.start_column:sel.end_column + 1] = [BLANK] * sel.width
        else:
            self._clear_cell(grid, self.cursor.track_index, self.cursor.column)
        self._drop_selection()
        self._changed()
        return True

    @staticmethod
    def _clear_cell(grid: GridBlock, track: int, col: int):
        if grid.tracks[track][col] == BAR:
            grid.clear_column(col)
        else:
            grid.tracks[track][col] = BLANK

    @staticmethod
    def _delete_span(grid: GridBlock, tracks: list[int], start: int, width: int):
        length = grid.width
        width = clamp(width, 1, length - start)
        for t in tracks:
            row = grid.tracks[t]
            row[start:length - width] = row[start + width:]
            row[length - width:] = [BLANK] * width

    def _smart_delete(self, grid: GridBlock, direction: str):
        track, col = self.cursor.track_index, self.cursor.column
        row = grid.tracks[track]
        if row[col] == BAR and grid.is_full_bar(col):
            self._delete_span(grid, ALL_TRACKS, col, 1)
            return
        if direction == FORWARD:
            bar = grid.find_next_bar(track, col)
            if bar != -1 and grid.is_full_bar(bar):
                row[col:bar - 1] = row[col + 1:bar]
                row[bar - 1] = BLANK
                return
        else:
            previous = grid.find_previous_bar(track, col)
            if previous == -1 or grid.is_full_bar(previous):
                end = grid.find_next_bar(track, col)
                if end == -1:
                    end = len(row)
                row[col:end - 1] = row[col + 1:end]
                row[end - 1] = BLANK
                return
        self._delete_span(grid, [track], col, 1)

    # --- Clipboard ---

    def _capture(self, sel: Selection) -> ClipboardRect:
        grid = self.document.grid_at(sel.block_index)
        data = [grid.tracks[t][sel.start_column:sel.end_column + 1] for t in sel.tracks]
        return ClipboardRect(width=sel.width, height=sel.height, data=data)

    def copy_selection(self) -> bool:
        sel = self._active_selection()
        if sel is None:
            return False
        self.clipboard = self._capture(sel)
        self.clear_selection()
        return True

    def cut_selection(self) -> bool:
        sel = self._active_selection()
        if sel is None:
            return False
        self.clipboard = self._capture(sel)
        return self.delete_selection()

    def paste_clipboard(self, rect: Optional[ClipboardRect] = None) -> bool:
        """Paste the clipboard rectangle at the cursor.

        Room is made by shifting right first: all six tracks in Shift mode
        or for a six-track rectangle, only the covered tracks in Insert
        mode. Replace mode overwrites. The rectangle is clipped to the
        block and never spills into the next one.

        Args:
            rect: Rectangle to paste instead of the editor's own clipboard
                (e.g. one read from the system clipboard).
        """
        clip = rect if rect is not None else self.clipboard
        grid = self._cursor_grid()
        if grid is None or clip is None:
            return False
        full = clip.height == TRACK_COUNT
        start_row = 0 if full else self.cursor.track_index
        rows = min(clip.height, TRACK_COUNT - start_row)
        start_col = self.cursor.column
        cols = min(clip.width, self.line_length - start_col)
        if rows <= 0 or cols <= 0:
            logger.debug("Paste refused: nothing fits at column %d", start_col)
            return False
        self.save_snapshot()
        if self.mode == EditMode.SHIFT or full:
            self._shift_for_paste(grid, ALL_TRACKS, start_col, cols)
        elif self.mode == EditMode.INSERT:
            self._shift_for_paste(grid, list(range(start_row, start_row + rows)), start_col, cols)
        for r in range(rows):
            target = grid.tracks[start_row + r]
            for c in range(cols):
                target[start_col + c] = clip.cell(r, c)
        self._drop_selection()
        self._place_cursor(self.cursor.block_index, start_row, start_col + cols - 1)
        self._changed()
        return True

    @staticmethod
    def _shift_for_paste(grid: GridBlock, tracks: list[int], start: int, width: int):
        length = grid.width
        for t in tracks:
            row = grid.tracks[t]
            row[start + width:] = row[start:length - width]
            row[start:start + width] = [BLANK] * width

    # --- Navigation helpers ---

    def jump_to_next_bar_or_block(self) -> bool:
        """Move to the next bar on this track, else to the next grid's start."""
        grid = self._cursor_grid()
        if grid is None:
            return False
        cur = self.cursor
        bar = grid.find_next_bar(cur.track_index, cur.column)
        if bar != -1:
            self.set_cursor(cur.block_index, cur.track_index, bar)
            return True
        next_grid = self.document.next_grid(cur.block_index)
        if next_grid != -1:
            self.set_cursor(next_grid, cur.track_index, 0)
            return True
        return False

    def note_at_cursor(self) -> Optional[str]:
        grid = self._cursor_grid()
        if grid is None:
            return None
        return note_at(grid, self.cursor.track_index, self.cursor.column)

    # --- Text blocks ---

    def edit_text(self, block_index: int, text: str) -> bool:
        """Replace a text block's content.

        Consecutive edits of the same block share one undo snapshot until
        typing pauses for TEXT_UNDO_PAUSE seconds.
        """
        if not self.document.is_text(block_index):
            return False
        block = self.document.blocks[block_index]
        if block.text == text:
            return False
        now = self._clock()
        last = self._last_text_edit
        if (last is None or last[0] != block_index
                or now - last[1] >= EditorConstants.TEXT_UNDO_PAUSE):
            self.save_snapshot()
        block.text = text
        self._last_text_edit = (block_index, now)
        if self.cursor.block_index != block_index:
            self._place_cursor(block_index, 0, 0)
        self._changed()
        return True

    def pad_docked_text(self, block_index: int, width: int) -> bool:
        """Pad a docked caption with spaces so it reaches the given width."""
        if not self.document.is_docked(block_index):
            return False
        block = self.document.blocks[block_index]
        if len(block.text) >= width:
            return False
        self.save_snapshot()
        block.text = block.text.ljust(width)
        self._changed()
        return True

    # --- Text interchange ---

    def export_text(self) -> str:
        return format_blocks(self.document.blocks)

    def import_text(self, content: str) -> bool:
        """Replace the whole document with parsed text (undoable)."""
        blocks, line_length = parse_text(content, self.line_length)
        self.save_snapshot()
        self._drop_selection()
        self.document = Document(blocks, line_length)
        self._place_cursor(0, 0, 0)
        self._changed()
        return True
