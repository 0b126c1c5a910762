"""Persistence of the editor state.

The state is stored as JSON in the user's data directory under a fixed
key, and written atomically (temp file + rename) so a crash never leaves
a half-written file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

from .constants import EditorConstants
from .interchange import export_filename, format_blocks
from .model import (
    TRACK_COUNT,
    Block,
    CursorPosition,
    Document,
    EditMode,
    GridBlock,
    TextBlock,
    clamp_line_length,
)

logger = logging.getLogger(__name__)


def block_to_json(block: Block) -> Dict[str, Any]:
    if isinstance(block, GridBlock):
        return {"type": "tab", "data": [list(track) for track in block.tracks]}
    return {"type": "text", "data": block.text}


def block_from_json(data: Any, line_length: int) -> Optional[Block]:
    """Rebuild a block; a bare 2D array is the legacy grid shape."""
    if isinstance(data, list):
        data = {"type": "tab", "data": data}
    if not isinstance(data, dict):
        return None
    kind = data.get("type")
    payload = data.get("data")
    if kind == "text":
        return TextBlock(payload if isinstance(payload, str) else "")
    if kind == "tab" and isinstance(payload, list):
        rows = []
        for track in payload[:TRACK_COUNT]:
            if isinstance(track, str):
                rows.append(track)
            elif isinstance(track, list):
                rows.append("".join(str(ch)[:1] or EditorConstants.BLANK for ch in track))
            else:
                rows.append("")
        return GridBlock.from_rows(rows, line_length)
    return None


def state_to_payload(editor) -> Dict[str, Any]:
    cur = editor.cursor
    return {
        "blocks": [block_to_json(block) for block in editor.document.blocks],
        "lineLength": editor.document.line_length,
        "cur": {"block": cur.block_index, "stringIdx": cur.track_index, "col": cur.column},
        "editMode": editor.mode.value,
    }


def payload_to_state(payload: Any):
    """Decode a stored payload.

    Returns:
        Tuple of (document, cursor, mode), or None if the payload is unusable.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("blocks"), list):
        return None
    line_length = clamp_line_length(payload.get("lineLength") or EditorConstants.DEFAULT_LINE_LENGTH)
    blocks = []
    for raw in payload["blocks"]:
        block = block_from_json(raw, line_length)
        if block is None:
            logger.warning("Skipping unreadable block in stored state: %r", raw)
            continue
        blocks.append(block)
    document = Document(blocks, line_length)

    cursor = CursorPosition()
    cur = payload.get("cur")
    if isinstance(cur, dict):
        try:
            cursor = CursorPosition(int(cur.get("block", 0)), int(cur.get("stringIdx", 0)),
                                    int(cur.get("col", 0)))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid stored cursor: %r", cur)

    try:
        mode = EditMode(payload.get("editMode") or EditMode.REPLACE.value)
    except ValueError:
        mode = EditMode.REPLACE
    return document, cursor, mode


def write_text_atomic(path: Path, content: str) -> bool:
    dir_name = str(path.parent)
    temp_filename = None
    try:
        with tempfile.NamedTemporaryFile(mode="w", encoding="utf-8", dir=dir_name,
                                         suffix=".tmp", delete=False) as temp_file:
            temp_filename = temp_file.name
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_filename, path)
        return True
    except OSError as e:
        logger.warning(f"Could not write {path}: {e}")
        if temp_filename is not None:
            try:
                os.remove(temp_filename)
            except OSError:
                pass
        return False


class DocumentStore:
    """Saves and loads the editor state under a fixed key."""

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            data_dir = Path(platformdirs.user_data_dir(EditorConstants.APP_NAME,
                                                       EditorConstants.APP_AUTHOR))
            path = data_dir / f"{EditorConstants.STORAGE_KEY}.json"
        self.path = Path(path)

    def _ensure_dir(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create data directory {self.path.parent}: {e}")

    def save(self, editor) -> bool:
        """Write the editor state; False if the write failed."""
        self._ensure_dir()
        content = json.dumps(state_to_payload(editor))
        return write_text_atomic(self.path, content)

    def load(self):
        """Read the stored state.

        Returns:
            Tuple of (document, cursor, mode), or None if nothing usable is stored.
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load state from {self.path}: {e}")
            return None
        state = payload_to_state(payload)
        if state is None:
            logger.warning("Stored state has invalid format, ignoring")
        return state

    def load_into(self, editor) -> bool:
        state = self.load()
        if state is None:
            return False
        document, cursor, mode = state
        editor.restore(document, cursor, mode)
        return True

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {self.path}: {e}")


def export_to_file(editor, path: Optional[str] = None, directory: str = ".") -> Optional[str]:
    """Write the document as interchange text.

    Without a path, the file name comes from the document title.

    Returns:
        The path written, or None on failure
    """
    if path is None:
        path = os.path.join(directory, export_filename(editor.document.blocks))
    if write_text_atomic(Path(path), format_blocks(editor.document.blocks)):
        return path
    return None


def import_from_file(editor, path: str) -> bool:
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return False
    return editor.import_text(content)
