from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .constants import EditorConstants

TRACK_COUNT = EditorConstants.TRACK_COUNT
BLANK = EditorConstants.BLANK
BAR = EditorConstants.BAR


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def clamp_line_length(length) -> int:
    """Clamp a requested line length to the legal range."""
    try:
        length = int(length)
    except (TypeError, ValueError):
        return EditorConstants.DEFAULT_LINE_LENGTH
    return clamp(length, EditorConstants.MIN_LINE_LENGTH, EditorConstants.MAX_LINE_LENGTH)


class EditMode(Enum):
    """How typed characters displace existing grid content."""
    REPLACE = "replace"
    SHIFT = "shift"
    INSERT = "insert"

    def next(self) -> "EditMode":
        order = [EditMode.REPLACE, EditMode.SHIFT, EditMode.INSERT]
        return order[(order.index(self) + 1) % len(order)]

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class GridBlock:
    """Six parallel character tracks sharing one width."""
    tracks: list[list[str]]

    @classmethod
    def empty(cls, line_length: int) -> "GridBlock":
        return cls([[BLANK] * line_length for _ in range(TRACK_COUNT)])

    @classmethod
    def from_rows(cls, rows: list[str], line_length: int) -> "GridBlock":
        """Build a grid from up to six strings, padded or truncated to line_length."""
        tracks = []
        for i in range(TRACK_COUNT):
            row = list(rows[i]) if i < len(rows) else []
            tracks.append(_fit(row, line_length))
        return cls(tracks)

    @property
    def width(self) -> int:
        return len(self.tracks[0]) if self.tracks else 0

    def row(self, track: int) -> str:
        return "".join(self.tracks[track])

    def is_full_bar(self, col: int) -> bool:
        if not 0 <= col < self.width:
            return False
        return all(track[col] == BAR for track in self.tracks)

    def find_next_bar(self, track: int, from_col: int) -> int:
        """Return the first bar column strictly right of from_col, or -1."""
        row = self.tracks[track]
        for i in range(from_col + 1, len(row)):
            if row[i] == BAR:
                return i
        return -1

    def find_previous_bar(self, track: int, to_col: int) -> int:
        """Return the last bar column strictly left of to_col, or -1."""
        row = self.tracks[track]
        for i in range(min(to_col, len(row)) - 1, -1, -1):
            if row[i] == BAR:
                return i
        return -1

    def clear_column(self, col: int):
        for track in self.tracks:
            track[col] = BLANK

    def set_bar(self, col: int):
        for track in self.tracks:
            track[col] = BAR

    def resized(self, line_length: int) -> "GridBlock":
        return GridBlock([_fit(list(track), line_length) for track in self.tracks])

    def copy(self) -> "GridBlock":
        return GridBlock([list(track) for track in self.tracks])


@dataclass
class TextBlock:
    """Free-form text; a single line of it labels the grid below."""
    text: str = ""

    @property
    def is_single_line(self) -> bool:
        return "\n" not in self.text

    def copy(self) -> "TextBlock":
        return TextBlock(self.text)


Block = Union[GridBlock, TextBlock]


def _fit(row: list[str], line_length: int) -> list[str]:
    if len(row) >= line_length:
        return row[:line_length]
    return row + [BLANK] * (line_length - len(row))


class Document:
    """Ordered block list plus the shared grid width.

    There is always at least one block, and every grid's tracks are
    exactly line_length cells long.
    """

    def __init__(self, blocks: Optional[list[Block]] = None,
                 line_length: int = EditorConstants.DEFAULT_LINE_LENGTH):
        self.line_length = clamp_line_length(line_length)
        self.blocks: list[Block] = []
        for block in blocks or []:
            if isinstance(block, GridBlock):
                block = block.resized(self.line_length)
            self.blocks.append(block)
        self.ensure_not_empty()

    def __len__(self):
        return len(self.blocks)

    def ensure_not_empty(self):
        if not self.blocks:
            self.blocks.append(GridBlock.empty(self.line_length))

    def is_grid(self, index: int) -> bool:
        return 0 <= index < len(self.blocks) and isinstance(self.blocks[index], GridBlock)

    def is_text(self, index: int) -> bool:
        return 0 <= index < len(self.blocks) and isinstance(self.blocks[index], TextBlock)

    def grid_at(self, index: int) -> Optional[GridBlock]:
        if self.is_grid(index):
            return self.blocks[index]
        return None

    def insert_block(self, at: int, block: Block):
        at = clamp(at, 0, len(self.blocks))
        if isinstance(block, GridBlock) and block.width != self.line_length:
            block = block.resized(self.line_length)
        self.blocks.insert(at, block)

    def delete_block(self, index: int) -> bool:
        """Remove a block. The last remaining block is never removed."""
        if len(self.blocks) <= 1 or not 0 <= index < len(self.blocks):
            return False
        del self.blocks[index]
        return True

    def move_block(self, index: int, direction: int) -> bool:
        """Swap a block with its neighbour in the given direction (+1/-1)."""
        new_index = index + direction
        if direction not in (-1, 1):
            return False
        if not 0 <= index < len(self.blocks) or not 0 <= new_index < len(self.blocks):
            return False
        self.blocks[index], self.blocks[new_index] = self.blocks[new_index], self.blocks[index]
        return True

    def resize_line_length(self, new_length) -> int:
        """Resize every grid to the clamped length and return that length."""
        length = clamp_line_length(new_length)
        self.blocks = [
            block.resized(length) if isinstance(block, GridBlock) else block
            for block in self.blocks
        ]
        self.line_length = length
        return length

    def is_docked(self, index: int) -> bool:
        """True for a single-line text block directly above a grid."""
        return (self.is_text(index)
                and self.blocks[index].is_single_line
                and self.is_grid(index + 1))

    def docked_grid_for_text(self, index: int) -> int:
        return index + 1 if self.is_docked(index) else -1

    def next_grid(self, index: int) -> int:
        for i in range(index + 1, len(self.blocks)):
            if isinstance(self.blocks[i], GridBlock):
                return i
        return -1

    def previous_grid(self, index: int) -> int:
        for i in range(min(index, len(self.blocks)) - 1, -1, -1):
            if isinstance(self.blocks[i], GridBlock):
                return i
        return -1

    def copy_blocks(self) -> list[Block]:
        return [block.copy() for block in self.blocks]


@dataclass
class CursorPosition:
    block_index: int = 0
    track_index: int = 0
    column: int = 0

    def copy(self) -> "CursorPosition":
        return CursorPosition(self.block_index, self.track_index, self.column)


@dataclass
class Selection:
    """Normalized rectangle within one grid block (inclusive bounds)."""
    block_index: int
    start_track: int
    end_track: int
    start_column: int
    end_column: int

    @classmethod
    def normalized(cls, block_index: int, track_a: int, col_a: int,
                   track_b: int, col_b: int, line_length: int) -> "Selection":
        last_track = TRACK_COUNT - 1
        last_col = line_length - 1
        return cls(
            block_index=block_index,
            start_track=clamp(min(track_a, track_b), 0, last_track),
            end_track=clamp(max(track_a, track_b), 0, last_track),
            start_column=clamp(min(col_a, col_b), 0, last_col),
            end_column=clamp(max(col_a, col_b), 0, last_col),
        )

    @property
    def width(self) -> int:
        return self.end_column - self.start_column + 1

    @property
    def height(self) -> int:
        return self.end_track - self.start_track + 1

    @property
    def tracks(self) -> list[int]:
        return list(range(self.start_track, self.end_track + 1))

    def contains(self, block_index: int, track: int, col: int) -> bool:
        return (block_index == self.block_index
                and self.start_track <= track <= self.end_track
                and self.start_column <= col <= self.end_column)


@dataclass
class SelectionAnchor:
    block_index: int
    track_index: int
    column: int


class TabView(ABC):
    """Read-only consumer of editor state."""
    _editor = None

    @property
    def editor(self):
        assert self._editor
        return self._editor

    @abstractmethod
    def render(self):
        """Rebuild the projection of the editor state.

        Called after every state change; must not mutate the editor.
        """
