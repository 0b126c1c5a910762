"""Plain-text interchange format for tab documents.

A grid is written as six lines, each prefixed with its track label
("e|" ... "E|"). Blocks are separated by a blank line, except that a
single-line text block sits directly above the grid it labels (docked).
"""

import logging
import re
from typing import Optional

from .constants import EditorConstants
from .model import Block, GridBlock, TextBlock, clamp_line_length

logger = logging.getLogger(__name__)

LABELS = EditorConstants.TRACK_LABELS
LABEL_WIDTH = EditorConstants.LABEL_WIDTH

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def format_blocks(blocks: list[Block]) -> str:
    """Serialize blocks to the interchange text."""
    out = []
    last = len(blocks) - 1
    for index, block in enumerate(blocks):
        if isinstance(block, GridBlock):
            for label, track in zip(LABELS, block.tracks):
                out.append(label + "".join(track) + "\n")
            if index < last:
                out.append("\n")
        else:
            out.append(block.text + "\n")
            docked = block.is_single_line and index < last and isinstance(blocks[index + 1], GridBlock)
            if not docked and index < last:
                out.append("\n")
    return "".join(out)


def is_grid_sequence(lines: list[str]) -> bool:
    """True if six lines carry the six track labels in order."""
    if len(lines) != len(LABELS):
        return False
    return all(line[:LABEL_WIDTH] == label for line, label in zip(lines, LABELS))


def _grid_at(lines: list[str], i: int) -> bool:
    return i + len(LABELS) <= len(lines) and is_grid_sequence(lines[i:i + len(LABELS)])


def _grid_cells(line: str) -> str:
    return line[LABEL_WIDTH:].rstrip()


def _is_blank(line: str) -> bool:
    return line.strip() == ""


def parse_text(content: str, line_length: int = EditorConstants.DEFAULT_LINE_LENGTH):
    """Parse interchange text into blocks.

    The line length grows to fit the longest grid line (it never shrinks
    below line_length) and is clamped to the legal range.

    Returns:
        Tuple of (blocks, line_length)
    """
    lines = content.replace("\r", "").split("\n")
    track_count = len(LABELS)

    longest = line_length
    i = 0
    while i < len(lines):
        if _grid_at(lines, i):
            for line in lines[i:i + track_count]:
                longest = max(longest, len(_grid_cells(line)))
            i += track_count
        else:
            i += 1
    length = clamp_line_length(longest)

    blocks: list[Block] = []
    i = 0
    while i < len(lines):
        if _grid_at(lines, i):
            rows = [_grid_cells(line) for line in lines[i:i + track_count]]
            blocks.append(GridBlock.from_rows(rows, length))
            i += track_count
            continue

        text_lines = []
        while i < len(lines) and not _grid_at(lines, i):
            text_lines.append(lines[i])
            i += 1
        blocks.extend(_text_blocks(text_lines, grid_follows=i < len(lines)))

    if not blocks:
        blocks.append(GridBlock.empty(length))
    logger.debug("Parsed %d blocks at line length %d", len(blocks), length)
    return blocks, length


def _text_blocks(text_lines: list[str], grid_follows: bool) -> list[TextBlock]:
    """Turn a run of non-grid lines into text blocks.

    When a grid follows and the last content line stands alone (it is
    the only line or the line above it is blank), it becomes a separate
    docked block.
    """
    while text_lines and _is_blank(text_lines[0]):
        text_lines.pop(0)
    while text_lines and _is_blank(text_lines[-1]):
        text_lines.pop()

    docked: Optional[str] = None
    if grid_follows and text_lines:
        if len(text_lines) == 1 or _is_blank(text_lines[-2]):
            docked = text_lines.pop()
            while text_lines and _is_blank(text_lines[-1]):
                text_lines.pop()

    blocks = []
    if text_lines:
        blocks.append(TextBlock("\n".join(text_lines)))
    if docked is not None:
        blocks.append(TextBlock(docked))
    return blocks


def extract_title(blocks: list[Block]) -> Optional[str]:
    """Return the document title, if the first block carries one.

    A title is a first text line followed by a blank line, or a single
    docked line above the first grid.
    """
    if not blocks or not isinstance(blocks[0], TextBlock):
        return None
    lines = blocks[0].text.split("\n")
    if len(lines) >= 2 and lines[0].strip() and not lines[1].strip():
        return lines[0].strip()
    if len(lines) == 1 and lines[0].strip() and len(blocks) > 1 and isinstance(blocks[1], GridBlock):
        return lines[0].strip()
    return None


def sanitize_filename(name: str) -> str:
    """Make a string safe to use as a file name."""
    name = _INVALID_FILENAME_CHARS.sub("", name)
    name = re.sub(r"\s+", " ", name).strip()
    name = name[:EditorConstants.MAX_FILENAME_LENGTH]
    return name or EditorConstants.DEFAULT_EXPORT_NAME


def export_filename(blocks: list[Block]) -> str:
    title = extract_title(blocks)
    if title:
        return sanitize_filename(title) + ".txt"
    return EditorConstants.DEFAULT_EXPORT_NAME + ".txt"
