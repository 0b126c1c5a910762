"""Fret numbers and note names for grid cells."""

from typing import Optional

from .constants import EditorConstants
from .model import GridBlock

NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Open-string pitch of each track in standard tuning, high to low
TUNING = ["E", "B", "G", "D", "A", "E"]


def calculate_note(track: int, fret: int) -> Optional[str]:
    if not 0 <= track < len(TUNING) or fret < 0:
        return None
    base = NOTES.index(TUNING[track])
    return NOTES[(base + fret) % 12]


def _is_digit(ch: str) -> bool:
    return len(ch) == 1 and ch in "0123456789"


def fret_number_at(grid: GridBlock, track: int, col: int) -> Optional[int]:
    """Read the fret number that the digit at (track, col) belongs to.

    Adjacent digits form one number (e.g. "12"). Runs longer than two
    digits, or numbers above MAX_FRET, are read one digit at a time.
    """
    row = grid.tracks[track]
    if not 0 <= col < len(row) or not _is_digit(row[col]):
        return None
    start = col
    while start > 0 and _is_digit(row[start - 1]):
        start -= 1
    end = col
    while end < len(row) - 1 and _is_digit(row[end + 1]):
        end += 1
    if end - start + 1 > 2:
        return int(row[col])
    fret = int("".join(row[start:end + 1]))
    if fret > EditorConstants.MAX_FRET:
        return int(row[col])
    return fret


def note_at(grid: GridBlock, track: int, col: int) -> Optional[str]:
    fret = fret_number_at(grid, track, col)
    if fret is None:
        return None
    return calculate_note(track, fret)
