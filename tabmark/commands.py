"""Command pattern implementation for editor actions.

Commands translate key events into TabEditor operations. They hold no
editing logic of their own; status messages and prompts live on the app.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Optional, TYPE_CHECKING

from .clipboard import ClipboardManager
from .constants import EditorConstants
from .editing import BACKWARD, FORWARD
from .keyboard import KeyType
from .model import EditMode

if TYPE_CHECKING:
    from .app import TabApp
    from .keyboard import KeyEvent


class EditorCommand(ABC):
    """Base class for editor commands."""

    @abstractmethod
    def execute(self, app: 'TabApp', key_event: 'KeyEvent') -> bool:
        """Execute the command.

        Args:
            app: Application instance
            key_event: The key event that triggered this command

        Returns:
            True if the command modified the document
        """
        pass


def _on_text_block(app: 'TabApp') -> bool:
    editor = app.editor
    return editor.document.is_text(editor.cursor.block_index)


def _vertical_target(app: 'TabApp', delta: int) -> Tuple[int, int]:
    """Block and track one row up or down, crossing block boundaries."""
    editor = app.editor
    cur = editor.cursor
    last_track = EditorConstants.TRACK_COUNT - 1
    on_grid = editor.document.is_grid(cur.block_index)
    if on_grid and 0 <= cur.track_index + delta <= last_track:
        return cur.block_index, cur.track_index + delta
    target = cur.block_index + delta
    if not 0 <= target < len(editor.document.blocks):
        return cur.block_index, cur.track_index
    if delta < 0 and editor.document.is_grid(target):
        return target, last_track
    return target, 0


class MovementCommand(EditorCommand):
    """Base class for cursor movement commands."""

    def execute(self, app: 'TabApp', key_event: 'KeyEvent') -> bool:
        """Movement commands don't modify the document."""
        # Clear selection on non-shift movement
        app.editor.clear_selection()
        self._move(app, key_event)
        return False

    @abstractmethod
    def _move(self, app: 'TabApp', key_event: 'KeyEvent'):
        """Perform the movement."""
        pass


class LeftCharCommand(MovementCommand):
    def _move(self, app, key_event):
        app.editor.move_cursor(0, 0, -1)


class RightCharCommand(MovementCommand):
    def _move(self, app, key_event):
        app.editor.move_cursor(0, 0, 1)


class UpLineCommand(MovementCommand):
    def _move(self, app, key_event):
        block, track = _vertical_target(app, -1)
        app.editor.set_cursor(block, track, app.editor.cursor.column)


class DownLineCommand(MovementCommand):
    def _move(self, app, key_event):
        block, track = _vertical_target(app, 1)
        app.editor.set_cursor(block, track, app.editor.cursor.column)


class BeginningOfLineCommand(MovementCommand):
    def _move(self, app, key_event):
        app.editor.move_to_line_start()


class EndOfLineCommand(MovementCommand):
    def _move(self, app, key_event):
        app.editor.move_to_line_end()


class PreviousGridCommand(MovementCommand):
    def _move(self, app, key_event):
        editor = app.editor
        target = editor.document.previous_grid(editor.cursor.block_index)
        if target != -1:
            editor.set_cursor(target, editor.cursor.track_index, editor.cursor.column)


class NextGridCommand(MovementCommand):
    def _move(self, app, key_event):
        editor = app.editor
        target = editor.document.next_grid(editor.cursor.block_index)
        if target != -1:
            editor.set_cursor(target, editor.cursor.track_index, editor.cursor.column)


class JumpToBarCommand(MovementCommand):
    def _move(self, app, key_event):
        if not app.editor.jump_to_next_bar_or_block():
            app.status_message = "No bar or block ahead"


class SelectionMovementCommand(EditorCommand):
    """Base class for shift+arrow selection movements.

    The selection keeps its anchor; only the moving corner follows the
    cursor. Selections never leave the cursor's grid block.
    """

    def execute(self, app: 'TabApp', key_event: 'KeyEvent') -> bool:
        editor = app.editor
        if _on_text_block(app):
            return False
        d_track, d_col = self._delta()
        track = editor.cursor.track_index + d_track
        if not 0 <= track < EditorConstants.TRACK_COUNT:
            d_track = 0
        editor.extend_selection(0, d_track, d_col)
        return False

    @abstractmethod
    def _delta(self) -> Tuple[int, int]:
        """Return the (track, column) step."""
        pass


class ShiftLeftCommand(SelectionMovementCommand):
    def _delta(self):
        return 0, -1


class ShiftRightCommand(SelectionMovementCommand):
    def _delta(self):
        return 0, 1


class ShiftUpCommand(SelectionMovementCommand):
    def _delta(self):
        return -1, 0


class ShiftDownCommand(SelectionMovementCommand):
    def _delta(self):
        return 1, 0


class EditCommand(EditorCommand):
    """Base class for editing commands.

    The editor records its own undo snapshot for every operation that
    applies, so commands only report whether anything changed.
    """

    def execute(self, app: 'TabApp', key_event: 'KeyEvent') -> bool:
        return bool(self._edit(app, key_event))

    @abstractmethod
    def _edit(self, app: 'TabApp', key_event: 'KeyEvent') -> bool:
        """Perform the edit."""
        pass


class InsertTextCommand(EditCommand):
    def _edit(self, app, key_event):
        char = key_event.value
        # Filter out control and other non-printing characters
        if len(char) != 1 or not char.isprintable():
            return False
        editor = app.editor
        cur = editor.cursor
        if _on_text_block(app):
            block = editor.document.blocks[cur.block_index]
            return editor.edit_text(cur.block_index, block.text + char)
        at_last_column = cur.column == editor.line_length - 1
        changed = editor.insert_character(char)
        if changed and at_last_column and editor.mode == EditMode.REPLACE:
            # Typing past the end continues in the next block
            next_block = editor.cursor.block_index + 1
            if next_block < len(editor.document.blocks):
                editor.set_cursor(next_block, editor.cursor.track_index, 0)
        return changed


class BackspaceCommand(EditCommand):
    def _edit(self, app, key_event):
        editor = app.editor
        if _on_text_block(app):
            index = editor.cursor.block_index
            text = editor.document.blocks[index].text
            return editor.edit_text(index, text[:-1]) if text else False
        return editor.delete_character(BACKWARD)


class DeleteCharCommand(EditCommand):
    def _edit(self, app, key_event):
        if _on_text_block(app):
            return False
        return app.editor.delete_character(FORWARD)


class EnterCommand(EditCommand):
    """Bar at the cursor on a grid, line break in a text block."""

    def _edit(self, app, key_event):
        editor = app.editor
        if _on_text_block(app):
            index = editor.cursor.block_index
            return editor.edit_text(index, editor.document.blocks[index].text + "\n")
        changed = editor.insert_bar()
        if changed:
            editor.move_cursor(0, 1, 0)
        return changed


class ClearCellsCommand(EditCommand):
    def _edit(self, app, key_event):
        return app.editor.clear_selection_or_cell()


class NewGridCommand(EditCommand):
    def _edit(self, app, key_event):
        app.editor.new_grid_block()
        return True


class NewTextCommand(EditCommand):
    def _edit(self, app, key_event):
        app.editor.new_text_block()
        return True


class DeleteBlockCommand(EditCommand):
    def _edit(self, app, key_event):
        if app.editor.delete_block():
            app.status_message = "Block deleted"
            return True
        app.status_message = "Cannot delete the only block"
        return False


class MoveBlockUpCommand(EditCommand):
    def _edit(self, app, key_event):
        return app.editor.move_block(app.editor.cursor.block_index, -1)


class MoveBlockDownCommand(EditCommand):
    def _edit(self, app, key_event):
        return app.editor.move_block(app.editor.cursor.block_index, 1)


class PadCaptionCommand(EditCommand):
    """Extend the caption docked above this grid to the cursor column."""

    def _edit(self, app, key_event):
        editor = app.editor
        cur = editor.cursor
        caption = cur.block_index - 1
        if not editor.document.is_grid(cur.block_index) or not editor.document.is_docked(caption):
            app.status_message = "No caption above this grid"
            return False
        return editor.pad_docked_text(caption, cur.column)


class CutCommand(EditCommand):
    def _edit(self, app, key_event):
        editor = app.editor
        if editor.cut_selection():
            ClipboardManager.copy_rect(editor.clipboard)
            app.status_message = "Selection cut"
            return True
        app.status_message = "No selection"
        return False


class PasteCommand(EditCommand):
    def _edit(self, app, key_event):
        editor = app.editor
        rect = None
        if editor.clipboard is None:
            rect = ClipboardManager.paste_rect()
            if rect is None:
                app.status_message = "Clipboard is empty"
                return False
        return editor.paste_clipboard(rect)


class SystemCommand(EditorCommand):
    """Base class for system commands like export, quit, undo."""

    def execute(self, app: 'TabApp', key_event: 'KeyEvent') -> bool:
        """System commands don't modify document content directly."""
        self._execute_system(app, key_event)
        return False

    @abstractmethod
    def _execute_system(self, app: 'TabApp', key_event: 'KeyEvent'):
        """Perform the system action."""
        pass


class QuitCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        # The document is persisted after every edit, so quitting never loses work
        app.running = False


class ExportCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        app.start_prompt('export', app.default_export_name())


class ImportCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        app.start_prompt('import')


class ClearAllCommand(SystemCommand):
    """Ask before replacing the document with one empty grid."""

    def _execute_system(self, app, key_event):
        app.start_prompt('clear_all')


class LineLengthCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        app.start_prompt('line_length', str(app.editor.line_length))


class HelpCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        app.show_help()


class ToggleModeCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        mode = app.editor.toggle_mode()
        app.status_message = f"{mode.label} mode"


class CopyCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        editor = app.editor
        if editor.copy_selection():
            ClipboardManager.copy_rect(editor.clipboard)
            app.status_message = "Selection copied"
        else:
            app.status_message = "No selection"


class ClearSelectionCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        app.editor.clear_selection()


class UndoCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        if app.editor.undo():
            app.status_message = "Undone"
        else:
            app.status_message = "Nothing to undo"


class NoteCommand(SystemCommand):
    def _execute_system(self, app, key_event):
        note = app.editor.note_at_cursor()
        app.status_message = f"Note: {note}" if note else "No fret number here"


class CommandRegistry:
    """Registry for mapping key combinations to commands."""

    def __init__(self):
        self._commands: Dict[Tuple[KeyType, str], EditorCommand] = {}
        self._setup_default_commands()

    def _setup_default_commands(self):
        """Set up the default command mappings."""
        # Movement commands
        self.register((KeyType.SPECIAL, 'left'), LeftCharCommand())
        self.register((KeyType.SPECIAL, 'right'), RightCharCommand())
        self.register((KeyType.SPECIAL, 'up'), UpLineCommand())
        self.register((KeyType.SPECIAL, 'down'), DownLineCommand())
        self.register((KeyType.SPECIAL, 'home'), BeginningOfLineCommand())
        self.register((KeyType.SPECIAL, 'end'), EndOfLineCommand())
        self.register((KeyType.CTRL, 'a'), BeginningOfLineCommand())
        self.register((KeyType.CTRL, 'e'), EndOfLineCommand())
        self.register((KeyType.SPECIAL, 'page_up'), PreviousGridCommand())
        self.register((KeyType.SPECIAL, 'page_down'), NextGridCommand())
        self.register((KeyType.SPECIAL, 'tab'), JumpToBarCommand())

        # Selection movement commands (Shift+arrow)
        self.register((KeyType.SHIFT_SPECIAL, 'left'), ShiftLeftCommand())
        self.register((KeyType.SHIFT_SPECIAL, 'right'), ShiftRightCommand())
        self.register((KeyType.SHIFT_SPECIAL, 'up'), ShiftUpCommand())
        self.register((KeyType.SHIFT_SPECIAL, 'down'), ShiftDownCommand())
        self.register((KeyType.SPECIAL, 'escape'), ClearSelectionCommand())

        # Editing commands
        self.register((KeyType.SPECIAL, 'backspace'), BackspaceCommand())
        self.register((KeyType.SPECIAL, 'delete'), DeleteCharCommand())
        self.register((KeyType.CTRL, 'd'), DeleteCharCommand())
        self.register((KeyType.SPECIAL, 'enter'), EnterCommand())
        self.register((KeyType.CTRL, 'k'), ClearCellsCommand())
        self.register((KeyType.CTRL, 'x'), CutCommand())
        self.register((KeyType.CTRL, 'c'), CopyCommand())
        self.register((KeyType.CTRL, 'v'), PasteCommand())
        self.register((KeyType.CTRL, 'z'), UndoCommand())

        # Mode
        self.register((KeyType.SPECIAL, 'insert'), ToggleModeCommand())
        self.register((KeyType.CTRL, 't'), ToggleModeCommand())

        # Block structure
        self.register((KeyType.CTRL, 'n'), NewGridCommand())
        self.register((KeyType.CTRL, 'o'), NewTextCommand())
        self.register((KeyType.ALT, 'backspace'), DeleteBlockCommand())
        self.register((KeyType.ALT, 'up'), MoveBlockUpCommand())
        self.register((KeyType.ALT, 'down'), MoveBlockDownCommand())
        self.register((KeyType.CTRL, 'p'), PadCaptionCommand())
        self.register((KeyType.CTRL, 'u'), ClearAllCommand())

        # System commands
        self.register((KeyType.CTRL, 'q'), QuitCommand())
        self.register((KeyType.CTRL, 's'), ExportCommand())
        self.register((KeyType.CTRL, 'r'), ImportCommand())
        self.register((KeyType.CTRL, 'l'), LineLengthCommand())
        self.register((KeyType.CTRL, 'w'), NoteCommand())

        # Help command - F1 only
        self.register((KeyType.SPECIAL, 'f1'), HelpCommand())

    def register(self, key: Tuple[KeyType, str], command: EditorCommand):
        """Register a command for a key combination."""
        self._commands[key] = command

    def get_command(self, key_type: KeyType, value: str) -> Optional[EditorCommand]:
        """Get the command for a key combination."""
        return self._commands.get((key_type, value))

    def execute(self, app: 'TabApp', key_event: 'KeyEvent') -> bool:
        """Execute the command for the given key event.

        Returns:
            True if the document was modified
        """
        if key_event.is_alt:
            command = self.get_command(KeyType.ALT, key_event.value)
        else:
            command = self.get_command(key_event.key_type, key_event.value)

        if command:
            return command.execute(app, key_event)

        # Handle regular text input
        if key_event.key_type == KeyType.REGULAR:
            return InsertTextCommand().execute(app, key_event)

        return False
